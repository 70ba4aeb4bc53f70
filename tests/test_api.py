import io
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from exspectro import config, main
from exspectro.classification import QualityVerdict
from exspectro.dsp_engine.dynamic_range import DynamicRangeResult
from exspectro.main import app
from exspectro.report import build_report


@pytest.fixture
def client():
    return TestClient(app)


def _upload(client, payload=b"RIFF....WAVEfmt "):
    return client.post("/analyze", files={"file": ("track.wav", payload, "audio/wav")})


def test_health(client, quality_config):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "quality_analysis_enabled": True}


def test_analyze_returns_report(client, mocker, quality_config):
    report = build_report(
        QualityVerdict.of("fake"), 44100, 2, 16100.0, DynamicRangeResult("ok", 7.5, -0.3, -9.8), -8.2
    )
    analyze = mocker.patch("exspectro.main.analyze_track_quality", return_value=report)

    response = _upload(client)

    assert response.status_code == 200
    body = response.json()
    assert body["verdict"] == "fake"
    assert body["caption"] == f"Approx. quality: {report.summary}"
    assert body["warning"] is not None
    assert body["dynamic_range_db"] == pytest.approx(7.5)
    # temp file is gone once the request finishes
    tmp_path = analyze.call_args.args[0]
    assert not tmp_path.exists()


def test_analyze_undecodable_is_422(client, mocker, quality_config):
    mocker.patch("exspectro.main.analyze_track_quality", return_value=None)
    response = _upload(client)
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "UNDECODABLE_AUDIO"


def test_analyze_disabled_is_503(client, mocker, quality_config, monkeypatch):
    monkeypatch.setattr(quality_config, "ENABLE_QUALITY_ANALYSIS", False)
    analyze = mocker.patch("exspectro.main.analyze_track_quality")
    response = _upload(client)
    assert response.status_code == 503
    analyze.assert_not_called()


def test_analyze_oversized_upload_is_413(client, mocker, quality_config, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 8)
    analyze = mocker.patch("exspectro.main.analyze_track_quality")
    response = _upload(client, payload=b"x" * 64)
    assert response.status_code == 413
    analyze.assert_not_called()


def test_analyze_failure_is_500(client, mocker, quality_config):
    mocker.patch("exspectro.main.analyze_track_quality", side_effect=RuntimeError("boom"))
    response = _upload(client)
    assert response.status_code == 500
    assert response.json()["detail"] == {"error": "ANALYSIS_FAILED", "message": "boom"}


def test_spool_stops_reading_once_over_the_cap(monkeypatch, tmp_path):
    monkeypatch.setattr(main.tempfile, "tempdir", str(tmp_path))
    monkeypatch.setattr(main, "_SPOOL_CHUNK_BYTES", 16)
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 20)
    upload = SimpleNamespace(filename="big.flac", file=io.BytesIO(b"x" * 16 * 64))

    with pytest.raises(HTTPException) as excinfo:
        main._spool_upload(upload)

    assert excinfo.value.status_code == 413
    # two chunks are enough to cross 20 bytes; the rest is never read
    assert upload.file.tell() == 32
    assert list(tmp_path.iterdir()) == []


def test_spool_keeps_uploads_under_the_cap(monkeypatch, tmp_path):
    monkeypatch.setattr(main.tempfile, "tempdir", str(tmp_path))
    monkeypatch.setattr(main, "_SPOOL_CHUNK_BYTES", 16)
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 100)
    upload = SimpleNamespace(filename="small.wav", file=io.BytesIO(b"y" * 40))

    spooled = main._spool_upload(upload)

    assert spooled.suffix == ".wav"
    assert spooled.read_bytes() == b"y" * 40


def test_run_serves_app_with_uvicorn(mocker, monkeypatch):
    monkeypatch.setattr(config, "HOST", "127.0.0.1")
    monkeypatch.setattr(config, "PORT", 9123)
    serve = mocker.patch("exspectro.main.uvicorn.run")

    main.run()

    serve.assert_called_once_with(app, host="127.0.0.1", port=9123, log_level="info")
