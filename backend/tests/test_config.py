"""
Unit tests for settings and the pagination bounds derived from them.
"""
import pytest

from core.config import Settings, settings
from db.base import seed_admin_user
from schemas.common_schema import PageQuery
from schemas.notification_schema import GetNotificationsQuery


class TestSettings:

    def test_admin_seed_is_optional(self, monkeypatch):
        for name in ("ADMIN_USERNAME", "ADMIN_EMAIL", "ADMIN_PASSWORD", "ADMIN_FULL_NAME"):
            monkeypatch.delenv(name, raising=False)

        loaded = Settings(_env_file=None)

        assert loaded.ADMIN_EMAIL is None
        assert loaded.ADMIN_PASSWORD is None
        assert loaded.ADMIN_USERNAME == "admin"

    @pytest.mark.asyncio
    async def test_seed_skipped_without_credentials(self, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_EMAIL", None)
        monkeypatch.setattr(settings, "ADMIN_PASSWORD", None)
        # Returns before opening a session
        assert await seed_admin_user() is None


class TestPagination:

    def test_page_query_follows_settings(self):
        assert PageQuery().limit == settings.DEFAULT_PAGE_SIZE
        assert PageQuery(limit=settings.MAX_PAGE_SIZE).limit == settings.MAX_PAGE_SIZE
        with pytest.raises(ValueError):
            PageQuery(limit=settings.MAX_PAGE_SIZE + 1)

    def test_notifications_default_page(self):
        query = GetNotificationsQuery()
        assert query.limit == 20
        assert query.offset == 0
        with pytest.raises(ValueError):
            GetNotificationsQuery(limit=settings.MAX_PAGE_SIZE + 1)
