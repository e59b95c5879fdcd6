"""Tests for the feature flag table and its 60-second cache."""
import pytest

from models import FeatureFlag
from services import feature_flags
from services.errors import NotFoundError
from services.feature_flags import FlagCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def _set_row(db, key, enabled):
    db.query(FeatureFlag).filter(FeatureFlag.key == key).update({"enabled": enabled})
    db.commit()


class TestFlagCache:

    def test_defaults_seeded(self, db):
        keys = {f.key for f in db.query(FeatureFlag).all()}
        assert keys == set(feature_flags.FEATURE_FLAGS)

    def test_cached_value_survives_until_ttl(self, db, clock):
        cache = FlagCache(ttl=60, clock=clock)
        assert cache.get(db, "CHATBOT") is True

        _set_row(db, "CHATBOT", False)
        clock.now += 59
        assert cache.get(db, "CHATBOT") is True

        clock.now += 1
        assert cache.get(db, "CHATBOT") is False

    def test_invalidate_forces_reload(self, db, clock):
        cache = FlagCache(clock=clock)
        cache.get(db, "CHATBOT")
        _set_row(db, "CHATBOT", False)
        cache.invalidate()
        assert cache.get(db, "CHATBOT") is False

    def test_missing_row_uses_default(self, db, clock):
        db.query(FeatureFlag).filter(FeatureFlag.key == "ROADMAP_EXAMPLE").delete()
        db.query(FeatureFlag).filter(FeatureFlag.key == "CHATBOT").delete()
        db.commit()
        cache = FlagCache(clock=clock)
        assert cache.get(db, "CHATBOT") is True
        assert cache.get(db, "ROADMAP_EXAMPLE") is False

    def test_unknown_flag_is_off(self, db, clock):
        assert FlagCache(clock=clock).get(db, "NOT_A_FLAG") is False


class TestFlagWrites:

    def test_set_flag_invalidates_global_cache(self, db):
        assert feature_flags.is_enabled(db, "MANUAL_CONFIGURATION") is True
        result = feature_flags.set_flag(db, "MANUAL_CONFIGURATION", False)
        assert result["enabled"] is False
        assert result["has_override"] is True
        assert feature_flags.is_enabled(db, "MANUAL_CONFIGURATION") is False

    def test_reset_flag(self, db):
        feature_flags.set_flag(db, "ROADMAP_EXAMPLE", True)
        result = feature_flags.reset_flag(db, "ROADMAP_EXAMPLE")
        assert result["enabled"] is False
        assert result["has_override"] is False

    def test_set_unknown_flag(self, db):
        with pytest.raises(NotFoundError):
            feature_flags.set_flag(db, "NOT_A_FLAG", True)

    def test_list_by_category(self, db):
        roadmap = feature_flags.list_flags(db, "roadmap")
        assert [f["key"] for f in roadmap] == ["ROADMAP_EXAMPLE"]
        assert len(feature_flags.list_flags(db)) == len(feature_flags.FEATURE_FLAGS)
