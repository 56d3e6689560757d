from statement_ledger.api import build_engine, open_store
from statement_ledger.matching import MatchThresholds
from statement_ledger.settings import Settings
from statement_ledger.store import InMemoryStore, SqlStore


def test_defaults_from_empty_env():
    s = Settings.from_env({})
    assert s.database_url is None
    assert s.cache_ttl_seconds == 60.0
    assert s.max_attempts == 3
    assert s.thresholds == MatchThresholds()


def test_env_overrides_and_invalid_values_fall_back():
    s = Settings.from_env(
        {
            "DATABASE_URL": "  sqlite:///x.db ",
            "STATEMENT_LEDGER_CACHE_TTL": "5",
            "STATEMENT_LEDGER_MAX_ATTEMPTS": "zero",
            "STATEMENT_LEDGER_STORE_TIMEOUT": "-1",
            "STATEMENT_LEDGER_FUZZY_OVERLAP": "0.9",
        }
    )
    assert s.database_url == "sqlite:///x.db"
    assert s.cache_ttl_seconds == 5.0
    assert s.max_attempts == 3
    assert s.store_timeout_seconds == 10.0
    assert s.thresholds.overlap_ratio == 0.9


def test_open_store_picks_backend(tmp_path):
    assert isinstance(open_store(Settings()), InMemoryStore)
    sql = open_store(Settings(database_url=f"sqlite+pysqlite:///{tmp_path / 'kv.db'}"))
    assert isinstance(sql, SqlStore)
    sql.put("k", {"v": 1})
    assert sql.get("k") == {"v": 1}


def test_build_engine_uses_settings_thresholds():
    th = MatchThresholds(overlap_ratio=1.0)
    engine = build_engine(Settings(thresholds=th), store=InMemoryStore(), kind="supplier")
    try:
        assert engine.thresholds is th
        assert engine.kind == "supplier"
    finally:
        engine.close()


def test_api_facade_roundtrip():
    from statement_ledger.api import auto_train_from_narration, learn_mapping, suggest_name

    engine = build_engine(Settings(), store=InMemoryStore())
    try:
        learn_mapping("sri raja rajeswari ortho", "Sri Raja Rajeswari Hospital", engine=engine)
        assert suggest_name("sri raja rajeswari ortho", engine=engine) == "Sri Raja Rajeswari Hospital"
        assert suggest_name("completely unrelated text", engine=engine) is None

        auto_train_from_narration("UPI-SUNRISE PHARMA DISTRIBUTORS-PAYTM", engine=engine)
        assert suggest_name("sunrise pharma", engine=engine) is None
        auto_train_from_narration(
            "UPI-SUNRISE PHARMA DISTRIBUTORS-PAYTM", "Sunrise Pharma", engine=engine
        )
        assert suggest_name("sunrise pharma distributors", engine=engine) == "Sunrise Pharma"
    finally:
        engine.close()
