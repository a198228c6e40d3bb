from rest_gateway import main as gateway_main


def test_parser_accepts_url_and_options():
    """The connection string is positional; bind options are flags."""
    args = gateway_main.build_parser().parse_args(
        ["sqlite://app.db", "--host", "0.0.0.0", "--port", "9001", "--log-level", "debug"]
    )

    assert args.database_url == "sqlite://app.db"
    assert args.host == "0.0.0.0"
    assert args.port == 9001
    assert args.log_level == "debug"


def test_parser_url_is_optional():
    """DATABASE_URL may supply the connection string instead."""
    args = gateway_main.build_parser().parse_args([])
    assert args.database_url is None


def test_main_without_database_exits_with_usage_error(monkeypatch):
    """Nothing is served when no database is configured."""
    monkeypatch.setattr(gateway_main, "load_dotenv", lambda: None)

    def fail_run(*args, **kwargs):
        raise AssertionError("uvicorn should not start")

    monkeypatch.setattr(gateway_main.uvicorn, "run", fail_run)

    assert gateway_main.main([]) == 2


def test_main_rejects_invalid_url(monkeypatch):
    """Unparseable connection strings are rejected before startup."""
    monkeypatch.setattr(gateway_main, "load_dotenv", lambda: None)

    assert gateway_main.main(["oracle://host/db"]) == 2


def test_main_runs_uvicorn_with_settings(monkeypatch, tmp_path):
    """A valid URL builds the app and hands it to uvicorn."""
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(gateway_main, "load_dotenv", lambda: None)
    monkeypatch.setattr(gateway_main, "setup_telemetry", lambda: None)
    monkeypatch.setattr(gateway_main.uvicorn, "run", fake_run)

    exit_code = gateway_main.main([f"sqlite://{tmp_path / 'app.db'}", "--port", "9100"])

    assert exit_code == 0
    assert calls["port"] == 9100
    assert calls["host"] == "127.0.0.1"
    assert calls["log_level"] == "info"
    assert calls["app"].title == "dbrest"
