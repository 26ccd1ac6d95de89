"""인증 API 테스트 — 로그인, 토큰 갱신, /me 엔드포인트.

Auth API tests — Login, token refresh and the /me endpoint, plus the
bearer-token dependency used by every other router.
"""

from datetime import datetime, timezone

from httpx import AsyncClient

from app.utils.jwt import create_refresh_token
from tests.conftest import auth_header, make_token

AUTH = "/api/v1/auth"


# ===== Login =====

class TestLogin:
    """로그인 테스트."""

    async def test_login_success(self, client: AsyncClient, owner_user):
        """로그인 성공."""
        res = await client.post(f"{AUTH}/login", json={
            "email": "owner@test.com",
            "password": "owner123!",
        })
        assert res.status_code == 200
        data = res.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["token_type"] == "bearer"

    async def test_login_email_case_insensitive(self, client: AsyncClient, owner_user):
        """이메일 대소문자 무시."""
        res = await client.post(f"{AUTH}/login", json={
            "email": "OWNER@Test.com",
            "password": "owner123!",
        })
        assert res.status_code == 200

    async def test_login_wrong_password(self, client: AsyncClient, owner_user):
        """잘못된 비밀번호로 로그인 실패."""
        res = await client.post(f"{AUTH}/login", json={
            "email": "owner@test.com",
            "password": "wrong_password",
        })
        assert res.status_code == 401
        assert res.json()["detail"] == "Incorrect email or password"

    async def test_login_unknown_email(self, client: AsyncClient):
        """존재하지 않는 사용자로 로그인 실패."""
        res = await client.post(f"{AUTH}/login", json={
            "email": "nobody@test.com",
            "password": "whatever",
        })
        assert res.status_code == 401

    async def test_login_deleted_user(self, client: AsyncClient, db, owner_user):
        """삭제된 계정 로그인 실패."""
        owner_user.deleted_at = datetime.now(timezone.utc)
        await db.flush()

        res = await client.post(f"{AUTH}/login", json={
            "email": "owner@test.com",
            "password": "owner123!",
        })
        assert res.status_code == 401


# ===== Token Refresh =====

class TestTokenRefresh:
    """토큰 갱신 테스트."""

    async def test_refresh_success(self, client: AsyncClient, owner_user):
        """리프레시 토큰으로 새 토큰 발급, 새 토큰으로 API 접근 가능."""
        login_res = await client.post(f"{AUTH}/login", json={
            "email": "owner@test.com",
            "password": "owner123!",
        })
        refresh_token = login_res.json()["refresh_token"]

        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": refresh_token})
        assert res.status_code == 200
        access_token = res.json()["access_token"]

        me = await client.get(f"{AUTH}/me", headers=auth_header(access_token))
        assert me.status_code == 200
        assert me.json()["email"] == "owner@test.com"

    async def test_refresh_with_invalid_token(self, client: AsyncClient):
        """유효하지 않은 리프레시 토큰으로 갱신 실패."""
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": "invalid.token.here"})
        assert res.status_code == 401

    async def test_refresh_with_access_token_rejected(self, client: AsyncClient, owner_user, owner_token):
        """액세스 토큰으로 갱신 시도 시 401."""
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": owner_token})
        assert res.status_code == 401

    async def test_refresh_for_deleted_user(self, client: AsyncClient, db, owner_user):
        """삭제된 사용자의 리프레시 토큰은 거부."""
        token = create_refresh_token({"sub": str(owner_user.id)})
        owner_user.deleted_at = datetime.now(timezone.utc)
        await db.flush()

        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": token})
        assert res.status_code == 401


# ===== Me / bearer dependency =====

class TestMe:
    """/me 및 인증 의존성 테스트."""

    async def test_me(self, client: AsyncClient, admin_user, admin_token):
        """내 정보 조회."""
        res = await client.get(f"{AUTH}/me", headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert data["id"] == str(admin_user.id)
        assert data["is_admin"] is True
        assert data["name"] == "Admin"
        assert data["quota_usage_in_bytes"] == 0

    async def test_me_without_token(self, client: AsyncClient):
        """토큰 없이 접근 시 401."""
        res = await client.get(f"{AUTH}/me")
        assert res.status_code == 401

    async def test_me_with_garbage_token(self, client: AsyncClient):
        """잘못된 토큰으로 접근 시 401."""
        res = await client.get(f"{AUTH}/me", headers=auth_header("not-a-jwt"))
        assert res.status_code == 401

    async def test_me_with_refresh_token_rejected(self, client: AsyncClient, owner_user):
        """리프레시 토큰을 액세스 토큰으로 사용하면 401."""
        token = create_refresh_token({"sub": str(owner_user.id)})
        res = await client.get(f"{AUTH}/me", headers=auth_header(token))
        assert res.status_code == 401

    async def test_me_for_deleted_user(self, client: AsyncClient, db, owner_user):
        """삭제된 사용자의 토큰은 401."""
        token = make_token(owner_user)
        owner_user.deleted_at = datetime.now(timezone.utc)
        await db.flush()

        res = await client.get(f"{AUTH}/me", headers=auth_header(token))
        assert res.status_code == 401
