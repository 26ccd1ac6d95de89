"""검색 API 테스트 — 메타데이터/스마트 검색, 구 검색, 탐색, 제안, 인물/장소.

Search API tests — Metadata and smart search, the deprecated combined
search, explore data, suggestions, people, places and cities.
"""

import base64
import hashlib

import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.models import GeodataPlace
from tests.conftest import (
    auth_header,
    hours,
    make_asset,
    make_partner,
    make_person,
    make_tag,
)

SEARCH = "/api/v1/search"


def ids(res) -> list[str]:
    return [item["id"] for item in res.json()["assets"]["items"]]


@pytest_asyncio.fixture
async def library(db, owner_user, other_user):
    """검색용 에셋 라이브러리."""
    return {
        "seoul": await make_asset(
            db, owner_user, "seoul.jpg", taken_at=hours(1),
            exif={"city": "Seoul", "state": "Seoul", "country": "South Korea", "make": "Canon", "model": "EOS R5"},
        ),
        "busan": await make_asset(
            db, owner_user, "Busan_Beach.JPG", taken_at=hours(2),
            exif={"city": "Busan", "state": "Busan", "country": "South Korea", "make": "Sony", "model": "A7 IV"},
        ),
        "paris": await make_asset(
            db, owner_user, "paris.jpg", taken_at=hours(3),
            exif={"city": "Paris", "state": "Ile-de-France", "country": "France", "make": "Canon", "model": "EOS R6"},
        ),
        "video": await make_asset(db, owner_user, "clip.mp4", taken_at=hours(4), type="VIDEO"),
        "archived": await make_asset(db, owner_user, "archived.jpg", taken_at=hours(5), is_archived=True),
        "trashed": await make_asset(db, owner_user, "trashed.jpg", taken_at=hours(6), deleted_at=hours(10)),
        "hidden": await make_asset(db, owner_user, "hidden.mov", taken_at=hours(7), is_visible=False),
        "foreign": await make_asset(db, other_user, "foreign.jpg", taken_at=hours(8)),
    }


# ===== Metadata search =====

class TestMetadataSearch:
    """메타데이터 검색 테스트."""

    async def test_default_excludes_archived_trashed_hidden_and_foreign(
        self, client: AsyncClient, owner_token, library
    ):
        """기본 검색: 보관/휴지통/숨김/타인 에셋 제외, 최신순."""
        res = await client.post(f"{SEARCH}/metadata", json={}, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert ids(res) == [str(library[k].id) for k in ("video", "paris", "busan", "seoul")]
        assert res.json()["assets"]["next_page"] is None
        assert res.json()["albums"]["total"] == 0

    async def test_archived_filters(self, client, owner_token, library):
        """with_archived 포함, is_archived=true는 보관만."""
        res = await client.post(f"{SEARCH}/metadata", json={"with_archived": True}, headers=auth_header(owner_token))
        assert str(library["archived"].id) in ids(res)

        res = await client.post(f"{SEARCH}/metadata", json={"is_archived": True}, headers=auth_header(owner_token))
        assert ids(res) == [str(library["archived"].id)]

    async def test_trashed_filters(self, client, owner_token, library):
        """with_deleted 또는 trashed_after 지정 시 휴지통 에셋 포함."""
        res = await client.post(f"{SEARCH}/metadata", json={"with_deleted": True}, headers=auth_header(owner_token))
        assert str(library["trashed"].id) in ids(res)

        res = await client.post(
            f"{SEARCH}/metadata",
            json={"trashed_after": hours(9).isoformat()},
            headers=auth_header(owner_token),
        )
        assert ids(res) == [str(library["trashed"].id)]

    async def test_is_visible_false(self, client, owner_token, library):
        """is_visible=false면 숨김 에셋만."""
        res = await client.post(f"{SEARCH}/metadata", json={"is_visible": False}, headers=auth_header(owner_token))
        assert ids(res) == [str(library["hidden"].id)]

    async def test_exif_filters(self, client, owner_token, library):
        """EXIF 필터 (도시, 제조사)."""
        res = await client.post(f"{SEARCH}/metadata", json={"city": "Seoul"}, headers=auth_header(owner_token))
        assert ids(res) == [str(library["seoul"].id)]

        res = await client.post(
            f"{SEARCH}/metadata", json={"make": "Canon", "order": "asc"}, headers=auth_header(owner_token)
        )
        assert ids(res) == [str(library["seoul"].id), str(library["paris"].id)]

    async def test_with_exif(self, client, owner_token, library):
        """with_exif=true면 EXIF 포함."""
        res = await client.post(
            f"{SEARCH}/metadata", json={"city": "Paris", "with_exif": True}, headers=auth_header(owner_token)
        )
        item = res.json()["assets"]["items"][0]
        assert item["exif_info"]["country"] == "France"

    async def test_file_name_and_type(self, client, owner_token, library):
        """파일명 부분 일치(대소문자 무시), 타입 필터."""
        res = await client.post(
            f"{SEARCH}/metadata", json={"original_file_name": "beach"}, headers=auth_header(owner_token)
        )
        assert ids(res) == [str(library["busan"].id)]

        res = await client.post(f"{SEARCH}/metadata", json={"type": "VIDEO"}, headers=auth_header(owner_token))
        assert ids(res) == [str(library["video"].id)]

    async def test_taken_range(self, client, owner_token, library):
        """촬영 시각 범위."""
        res = await client.post(f"{SEARCH}/metadata", json={
            "taken_after": hours(2).isoformat(),
            "taken_before": hours(3).isoformat(),
        }, headers=auth_header(owner_token))
        assert ids(res) == [str(library["paris"].id), str(library["busan"].id)]

    async def test_checksum_base64_and_hex(self, client, owner_user, owner_token, library):
        """체크섬: 28자는 base64, 그 외 hex."""
        digest = hashlib.sha1(f"{owner_user.id}/paris.jpg".encode()).digest()

        res = await client.post(
            f"{SEARCH}/metadata",
            json={"checksum": base64.b64encode(digest).decode()},
            headers=auth_header(owner_token),
        )
        assert ids(res) == [str(library["paris"].id)]

        res = await client.post(f"{SEARCH}/metadata", json={"checksum": digest.hex()}, headers=auth_header(owner_token))
        assert ids(res) == [str(library["paris"].id)]

    async def test_invalid_checksum(self, client, owner_token, library):
        """잘못된 체크섬은 400."""
        res = await client.post(f"{SEARCH}/metadata", json={"checksum": "zz-not-hex"}, headers=auth_header(owner_token))
        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid checksum"

    async def test_pagination(self, client, owner_token, library):
        """페이지네이션: next_page."""
        res = await client.post(f"{SEARCH}/metadata", json={"size": 3}, headers=auth_header(owner_token))
        assert len(ids(res)) == 3
        assert res.json()["assets"]["next_page"] == "2"
        assert res.json()["assets"]["count"] == 3

        res = await client.post(f"{SEARCH}/metadata", json={"size": 3, "page": 2}, headers=auth_header(owner_token))
        assert ids(res) == [str(library["seoul"].id)]
        assert res.json()["assets"]["next_page"] is None

    async def test_invalid_page(self, client, owner_token):
        """page=0은 422."""
        res = await client.post(f"{SEARCH}/metadata", json={"page": 0}, headers=auth_header(owner_token))
        assert res.status_code == 422

    async def test_partner_in_timeline_included(self, client, db, owner_user, other_user, owner_token, library):
        """타임라인에 포함된 파트너 에셋은 검색됨."""
        await make_partner(db, shared_by=other_user, shared_with=owner_user, in_timeline=True)
        res = await client.post(f"{SEARCH}/metadata", json={}, headers=auth_header(owner_token))
        assert str(library["foreign"].id) in ids(res)

    async def test_partner_not_in_timeline_excluded(self, client, db, owner_user, other_user, owner_token, library):
        """타임라인에 없는 파트너 에셋은 제외."""
        await make_partner(db, shared_by=other_user, shared_with=owner_user, in_timeline=False)
        res = await client.post(f"{SEARCH}/metadata", json={}, headers=auth_header(owner_token))
        assert str(library["foreign"].id) not in ids(res)

    async def test_requires_auth(self, client):
        res = await client.post(f"{SEARCH}/metadata", json={})
        assert res.status_code == 401


# ===== Smart search =====

@pytest_asyncio.fixture
async def embedded(db, owner_user):
    """임베딩이 있는 에셋 3개와 없는 에셋 1개."""
    return {
        "red": await make_asset(db, owner_user, "red.jpg", taken_at=hours(1), embedding=[1.0, 0.0, 0.0]),
        "orange": await make_asset(db, owner_user, "orange.jpg", taken_at=hours(2), embedding=[0.9, 0.1, 0.0]),
        "blue": await make_asset(db, owner_user, "blue.jpg", taken_at=hours(3), embedding=[0.0, 0.0, 1.0]),
        "plain": await make_asset(db, owner_user, "plain.jpg", taken_at=hours(4)),
    }


class TestSmartSearch:
    """스마트 검색 테스트."""

    async def test_ranked_by_distance(self, client, owner_token, embedded, ml_settings, ml_server):
        """질의 임베딩과 가까운 순서로 정렬, 임베딩 없는 에셋 제외."""
        res = await client.post(f"{SEARCH}/smart", json={"query": "red sunset"}, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert ids(res) == [str(embedded[k].id) for k in ("red", "orange", "blue")]

        request = ml_server["requests"][0]
        assert request.url == "http://ml.test/predict"
        assert b'name="text"' in request.content
        assert b"red sunset" in request.content
        assert b'name="modelType"' in request.content

    async def test_pagination(self, client, owner_token, embedded, ml_settings, ml_server):
        """스마트 검색 페이지네이션."""
        ml_server["embedding"] = [0.0, 0.1, 1.0]
        res = await client.post(
            f"{SEARCH}/smart", json={"query": "blue", "size": 2}, headers=auth_header(owner_token)
        )
        assert ids(res) == [str(embedded["blue"].id), str(embedded["orange"].id)]
        assert res.json()["assets"]["next_page"] == "2"

        res = await client.post(
            f"{SEARCH}/smart", json={"query": "blue", "size": 2, "page": 2}, headers=auth_header(owner_token)
        )
        assert ids(res) == [str(embedded["red"].id)]
        assert res.json()["assets"]["next_page"] is None

    async def test_filters_apply(self, client, db, owner_token, embedded, ml_settings, ml_server):
        """메타데이터 필터가 함께 적용됨."""
        embedded["red"].is_favorite = True
        await db.flush()
        res = await client.post(
            f"{SEARCH}/smart", json={"query": "x", "is_favorite": True}, headers=auth_header(owner_token)
        )
        assert ids(res) == [str(embedded["red"].id)]

    async def test_disabled(self, client, owner_token, monkeypatch, ml_settings):
        """CLIP 비활성 시 400."""
        monkeypatch.setattr(ml_settings, "CLIP_ENABLED", False)
        res = await client.post(f"{SEARCH}/smart", json={"query": "x"}, headers=auth_header(owner_token))
        assert res.status_code == 400
        assert res.json()["detail"] == "smart_search is not enabled"

    async def test_machine_learning_failure(self, client, owner_token, embedded, ml_settings, ml_server):
        """머신러닝 서버 오류 시 502."""
        ml_server["status"] = 500
        res = await client.post(f"{SEARCH}/smart", json={"query": "x"}, headers=auth_header(owner_token))
        assert res.status_code == 502

    async def test_empty_embedding(self, client, owner_token, embedded, ml_settings, ml_server):
        """빈 임베딩 응답도 502."""
        ml_server["embedding"] = []
        res = await client.post(f"{SEARCH}/smart", json={"query": "x"}, headers=auth_header(owner_token))
        assert res.status_code == 502
        assert "empty embedding" in res.json()["detail"]

    async def test_empty_query_rejected(self, client, owner_token, ml_settings):
        """빈 질의는 422."""
        res = await client.post(f"{SEARCH}/smart", json={"query": ""}, headers=auth_header(owner_token))
        assert res.status_code == 422


# ===== Deprecated search =====

class TestDeprecatedSearch:
    """구 통합 검색 테스트."""

    async def test_missing_query(self, client, owner_token):
        """검색어 없으면 400."""
        res = await client.get(f"{SEARCH}/", headers=auth_header(owner_token))
        assert res.status_code == 400
        assert res.json()["detail"] == "Missing query"

    async def test_text_matches_file_name_and_exif(self, client, owner_token, library):
        """파일명 또는 EXIF 텍스트 일치."""
        res = await client.get(f"{SEARCH}/", params={"q": "busan"}, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert ids(res) == [str(library["busan"].id)]

        res = await client.get(f"{SEARCH}/", params={"query": "korea"}, headers=auth_header(owner_token))
        assert ids(res) == [str(library["busan"].id), str(library["seoul"].id)]
        assert res.json()["assets"]["next_page"] is None

    async def test_text_excludes_archived(self, client, owner_token, library):
        res = await client.get(f"{SEARCH}/", params={"q": "archived"}, headers=auth_header(owner_token))
        assert ids(res) == []

    async def test_smart_strategy(self, client, owner_token, embedded, ml_settings, ml_server):
        """smart=true면 CLIP 검색."""
        res = await client.get(
            f"{SEARCH}/", params={"q": "red", "smart": "true"}, headers=auth_header(owner_token)
        )
        assert res.status_code == 200
        assert ids(res)[0] == str(embedded["red"].id)
        assert len(ml_server["requests"]) == 1

    async def test_search_disabled(self, client, owner_token, monkeypatch, ml_settings):
        monkeypatch.setattr(ml_settings, "SEARCH_ENABLED", False)
        res = await client.get(f"{SEARCH}/", params={"q": "x"}, headers=auth_header(owner_token))
        assert res.status_code == 400
        assert res.json()["detail"] == "search is not enabled"


# ===== Explore / cities / suggestions =====

class TestExplore:
    """탐색 데이터 테스트."""

    async def test_cities_and_tags(self, client, db, owner_user, owner_token):
        """에셋 5개 이상인 도시/태그만, 가장 최근 에셋이 대표."""
        beach = await make_tag(db, owner_user, "beach")
        seoul = [
            await make_asset(db, owner_user, f"s{i}.jpg", taken_at=hours(i), exif={"city": "Seoul"}, tags=[beach])
            for i in range(5)
        ]
        for i in range(4):
            await make_asset(db, owner_user, f"b{i}.jpg", taken_at=hours(10 + i), exif={"city": "Busan"})

        res = await client.get(f"{SEARCH}/explore", headers=auth_header(owner_token))
        assert res.status_code == 200
        cities, tags = res.json()
        assert cities["field_name"] == "exif_info.city"
        assert [item["value"] for item in cities["items"]] == ["Seoul"]
        assert cities["items"][0]["data"]["id"] == str(seoul[4].id)
        assert tags["field_name"] == "tags"
        assert [item["value"] for item in tags["items"]] == ["beach"]

    async def test_empty_library(self, client, owner_token):
        res = await client.get(f"{SEARCH}/explore", headers=auth_header(owner_token))
        assert [section["items"] for section in res.json()] == [[], []]

    async def test_search_disabled(self, client, owner_token, monkeypatch, ml_settings):
        monkeypatch.setattr(ml_settings, "SEARCH_ENABLED", False)
        res = await client.get(f"{SEARCH}/explore", headers=auth_header(owner_token))
        assert res.status_code == 400


class TestCities:
    """도시별 대표 에셋 테스트."""

    async def test_one_asset_per_city(self, client, db, owner_user, owner_token, library):
        """도시별 가장 최근 이미지 하나, 도시 이름순."""
        newer_seoul = await make_asset(db, owner_user, "seoul2.jpg", taken_at=hours(20), exif={"city": "Seoul"})
        res = await client.get(f"{SEARCH}/cities", headers=auth_header(owner_token))
        assert res.status_code == 200
        assert [item["id"] for item in res.json()] == [
            str(library["busan"].id),
            str(library["paris"].id),
            str(newer_seoul.id),
        ]
        assert res.json()[0]["exif_info"]["city"] == "Busan"


class TestSuggestions:
    """검색 제안 테스트."""

    @pytest.mark.parametrize("params, expected", [
        ({"type": "country"}, ["France", "South Korea"]),
        ({"type": "state", "country": "South Korea"}, ["Busan", "Seoul"]),
        ({"type": "city"}, ["Busan", "Paris", "Seoul"]),
        ({"type": "city", "country": "France"}, ["Paris"]),
        ({"type": "camera-make"}, ["Canon", "Sony"]),
        ({"type": "camera-model", "make": "Canon"}, ["EOS R5", "EOS R6"]),
        ({"type": "camera-make", "model": "A7 IV"}, ["Sony"]),
    ])
    async def test_suggestions(self, client, owner_token, library, params, expected):
        res = await client.get(f"{SEARCH}/suggestions", params=params, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert res.json() == expected

    async def test_only_own_assets(self, client, db, other_user, owner_token, library):
        """다른 사용자의 EXIF 값은 제안되지 않음."""
        await make_asset(db, other_user, "tokyo.jpg", exif={"country": "Japan"})
        res = await client.get(f"{SEARCH}/suggestions", params={"type": "country"}, headers=auth_header(owner_token))
        assert "Japan" not in res.json()

    async def test_invalid_type(self, client, owner_token):
        res = await client.get(f"{SEARCH}/suggestions", params={"type": "lens"}, headers=auth_header(owner_token))
        assert res.status_code == 422


# ===== People / places =====

class TestPeopleAndPlaces:
    """인물/장소 검색 테스트."""

    async def test_person_search(self, client, db, owner_user, other_user, owner_token):
        """이름 접두 또는 단어 접두 일치, 숨김 인물은 요청 시에만."""
        await make_person(db, owner_user, "John Smith")
        await make_person(db, owner_user, "Mary Johnson")
        await make_person(db, owner_user, "Johnson Hidden", is_hidden=True)
        await make_person(db, owner_user, "Bob")
        await make_person(db, other_user, "John Other")

        res = await client.get(f"{SEARCH}/person", params={"name": "john"}, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert [p["name"] for p in res.json()] == ["John Smith", "Mary Johnson"]

        res = await client.get(
            f"{SEARCH}/person", params={"name": "john", "with_hidden": "true"}, headers=auth_header(owner_token)
        )
        assert [p["name"] for p in res.json()] == ["John Smith", "Johnson Hidden", "Mary Johnson"]

    async def test_places_prefix_first(self, client, db, owner_token):
        """접두 일치가 먼저, 짧은 이름 우선."""
        db.add_all([
            GeodataPlace(id=1, name="New Paris", latitude=1.0, longitude=1.0, country_code="US"),
            GeodataPlace(id=2, name="Paris", latitude=48.85, longitude=2.35, country_code="FR",
                         admin1_name="Ile-de-France"),
            GeodataPlace(id=3, name="Parish", latitude=2.0, longitude=2.0, country_code="US"),
            GeodataPlace(id=4, name="Berlin", latitude=52.5, longitude=13.4, country_code="DE"),
        ])
        await db.flush()

        res = await client.get(f"{SEARCH}/places", params={"name": "paris"}, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert [p["name"] for p in res.json()] == ["Paris", "Parish", "New Paris"]
        assert res.json()[0]["admin1_name"] == "Ile-de-France"


# ===== Wildcards in user input =====

class TestLikeWildcards:
    """검색어의 %, _는 와일드카드가 아닌 문자로 취급."""

    async def test_file_name(self, client, owner_token, library):
        res = await client.post(
            f"{SEARCH}/metadata", json={"original_file_name": "seo_l"}, headers=auth_header(owner_token)
        )
        assert ids(res) == []

        res = await client.post(
            f"{SEARCH}/metadata", json={"original_file_name": "n_b"}, headers=auth_header(owner_token)
        )
        assert ids(res) == [str(library["busan"].id)]

    async def test_deprecated_text_search(self, client, owner_token, library):
        res = await client.get(f"{SEARCH}/", params={"q": "%"}, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert ids(res) == []

    async def test_person(self, client, db, owner_user, owner_token):
        await make_person(db, owner_user, "John Smith")
        await make_person(db, owner_user, "Jo_anna")

        res = await client.get(f"{SEARCH}/person", params={"name": "j_hn"}, headers=auth_header(owner_token))
        assert res.json() == []

        res = await client.get(f"{SEARCH}/person", params={"name": "jo_"}, headers=auth_header(owner_token))
        assert [p["name"] for p in res.json()] == ["Jo_anna"]

    async def test_places(self, client, db, owner_token):
        db.add(GeodataPlace(id=1, name="Paris", latitude=48.85, longitude=2.35, country_code="FR"))
        await db.flush()

        res = await client.get(f"{SEARCH}/places", params={"name": "p%s"}, headers=auth_header(owner_token))
        assert res.json() == []
