"""시스템 설정 서비스 — 기능 플래그와 머신러닝 설정 스냅샷.

System Config Service — Feature flags and a snapshot of machine-learning
settings. The snapshot is rebuilt from ``settings`` on every call so that
tests (and admins reloading env) see changes immediately.
"""

import enum

from pydantic import BaseModel

from app.config import settings
from app.utils.exceptions import BadRequestError


class ClipConfig(BaseModel):
    """CLIP 모델 설정 — CLIP encoder configuration."""

    enabled: bool
    model_name: str
    duplicate_threshold: float


class MachineLearningConfig(BaseModel):
    """머신러닝 서비스 설정 — Machine-learning service configuration."""

    enabled: bool
    url: str
    clip: ClipConfig


class SystemConfig(BaseModel):
    """시스템 설정 스냅샷 — System configuration snapshot."""

    machine_learning: MachineLearningConfig
    search_enabled: bool


class FeatureFlag(str, enum.Enum):
    """기능 플래그 — Server feature flags."""

    SEARCH = "search"
    SMART_SEARCH = "smart_search"
    DUPLICATE_DETECTION = "duplicate_detection"


class SystemConfigService:
    """시스템 설정과 기능 플래그를 제공하는 서비스.

    Service exposing the system config and feature flag checks.
    ``smart_search`` and ``duplicate_detection`` both require the
    machine-learning service and CLIP to be enabled.
    """

    def get_config(self) -> SystemConfig:
        """현재 설정 스냅샷을 반환합니다 — Build the current config snapshot."""
        return SystemConfig(
            machine_learning=MachineLearningConfig(
                enabled=settings.MACHINE_LEARNING_ENABLED,
                url=settings.MACHINE_LEARNING_URL,
                clip=ClipConfig(
                    enabled=settings.CLIP_ENABLED,
                    model_name=settings.CLIP_MODEL_NAME,
                    duplicate_threshold=settings.DUPLICATE_DETECTION_MAX_DISTANCE,
                ),
            ),
            search_enabled=settings.SEARCH_ENABLED,
        )

    def get_features(self) -> dict[FeatureFlag, bool]:
        """모든 기능 플래그 상태 — State of every feature flag."""
        config: SystemConfig = self.get_config()
        clip_ready: bool = config.machine_learning.enabled and config.machine_learning.clip.enabled
        return {
            FeatureFlag.SEARCH: config.search_enabled,
            FeatureFlag.SMART_SEARCH: clip_ready,
            FeatureFlag.DUPLICATE_DETECTION: clip_ready,
        }

    def is_enabled(self, flag: FeatureFlag) -> bool:
        """기능 활성 여부 — Whether a feature is enabled."""
        return self.get_features()[flag]

    def require_feature(self, flag: FeatureFlag) -> None:
        """기능이 비활성이면 400 에러를 발생시킵니다.

        Raise when the feature is disabled.

        Raises:
            BadRequestError: 기능 비활성 (``"<flag> is not enabled"``)
        """
        if not self.is_enabled(flag):
            raise BadRequestError(f"{flag.value} is not enabled")


# 싱글턴 인스턴스 — Singleton instance
system_config_service: SystemConfigService = SystemConfigService()
