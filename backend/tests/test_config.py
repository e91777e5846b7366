from app.core.config import parse_allowed_origins


def test_parse_allowed_origins_adds_frontend_url_once():
    origins = parse_allowed_origins(" https://app.example.com/ ,http://localhost:3000,", "http://localhost:3000/")
    assert origins == ["https://app.example.com", "http://localhost:3000"]


def test_parse_allowed_origins_handles_empty_values():
    assert parse_allowed_origins(None, None) == []
    assert parse_allowed_origins("", "https://app.example.com") == ["https://app.example.com"]
