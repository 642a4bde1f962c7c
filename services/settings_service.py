"""
Settings service for business configuration.

Settings are pre-seeded key/value/data_type rows. Only updates are allowed.
Values are decoded by their declared data_type; an unknown type is an
error rather than a silent string.
"""

from typing import Optional, Union
import structlog

from config import get_supabase_client
from models.settings import (
    SettingDataType,
    SettingUpdate,
    SettingResponse,
    BusinessSettings,
)
from exceptions import (
    DatabaseError,
    SettingNotFoundError,
    InvalidSettingTypeError,
    InvalidSettingValueError,
)

logger = structlog.get_logger(__name__)

SettingValue = Union[bool, float, str]


def decode_setting(setting: SettingResponse) -> SettingValue:
    """
    Decode a stored value by its data_type.

    - boolean: True only for "true"
    - number: float; empty reads as 0
    - string: the value, empty for null

    Raises:
        InvalidSettingTypeError: data_type is missing or unknown
        InvalidSettingValueError: number that does not parse
    """
    try:
        data_type = SettingDataType(setting.data_type)
    except ValueError:
        raise InvalidSettingTypeError(setting.key, setting.data_type)

    raw = setting.value or ""

    if data_type == SettingDataType.BOOLEAN:
        return raw == "true"

    if data_type == SettingDataType.NUMBER:
        if not raw.strip():
            return 0.0
        try:
            return float(raw)
        except ValueError:
            raise InvalidSettingValueError(setting.key, raw, data_type.value)

    return raw


class SettingsService:
    """
    Settings business logic.

    Handles read and update operations for settings.
    Settings are pre-seeded - no create/delete allowed.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "settings"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self) -> list[SettingResponse]:
        """All setting rows, ordered by key."""
        logger.info("getting_settings")

        try:
            response = self.db.table(self.table).select("*").order("key").execute()
        except Exception as e:
            logger.error("settings_get_all_failed", error=str(e))
            raise DatabaseError("select", str(e))

        settings = [SettingResponse(**row) for row in response.data]
        logger.info("settings_retrieved", count=len(settings))
        return settings

    def get_by_key(self, key: str) -> SettingResponse:
        """
        Get setting by key.

        Raises:
            SettingNotFoundError: If setting doesn't exist
        """
        logger.debug("getting_setting", key=key)

        try:
            response = (
                self.db.table(self.table)
                .select("*")
                .eq("key", key)
                .execute()
            )
        except Exception as e:
            logger.error("setting_get_failed", key=key, error=str(e))
            raise DatabaseError("select", str(e))

        if not response.data:
            raise SettingNotFoundError(key)

        return SettingResponse(**response.data[0])

    def get_decoded(self) -> dict[str, SettingValue]:
        """Every setting decoded by its data_type."""
        return {s.key: decode_setting(s) for s in self.get_all()}

    def get_business_settings(self) -> BusinessSettings:
        """
        Typed business settings; stored rows override the defaults.

        Raises:
            InvalidSettingTypeError: If any row has an unknown data_type
        """
        return BusinessSettings(**self.get_decoded())

    # ===================
    # UPDATE OPERATIONS
    # ===================

    def update(self, key: str, data: SettingUpdate) -> SettingResponse:
        """
        Update setting value.

        The new value must decode under the setting's data_type.

        Raises:
            SettingNotFoundError: If setting doesn't exist
            InvalidSettingValueError: If the value does not match the type
        """
        logger.info("updating_setting", key=key)

        existing = self.get_by_key(key)
        decode_setting(existing.model_copy(update={"value": data.value}))

        try:
            response = (
                self.db.table(self.table)
                .update({"value": data.value})
                .eq("key", key)
                .execute()
            )
        except Exception as e:
            logger.error("setting_update_failed", key=key, error=str(e))
            raise DatabaseError("update", str(e))

        if not response.data:
            raise SettingNotFoundError(key)

        logger.info("setting_updated", key=key)
        return SettingResponse(**response.data[0])


# Singleton instance
_settings_service: Optional[SettingsService] = None


def get_settings_service() -> SettingsService:
    """Get or create SettingsService instance."""
    global _settings_service
    if _settings_service is None:
        _settings_service = SettingsService()
    return _settings_service
