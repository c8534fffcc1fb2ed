from audio_extract.settings import load_settings


def test_load_settings_defaults(monkeypatch):
    for name in (
        "CONVERTER_MAX_BYTES",
        "CONVERTER_DECODER",
        "CONVERTER_ENCODER",
        "CONVERTER_RENDER_QUANTUM",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    cfg = load_settings()

    assert cfg.converter.max_bytes == 100 * 1024 * 1024
    assert cfg.converter.decoder == "auto"
    assert cfg.converter.encoder == "ffmpeg"
    assert cfg.converter.render_quantum_frames == 128
    assert cfg.service.log_level == "INFO"


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("CONVERTER_MAX_BYTES", "2048")
    monkeypatch.setenv("CONVERTER_DECODER", "SoundFile")
    monkeypatch.setenv("CONVERTER_ENCODER", "mock")
    monkeypatch.setenv("CONVERTER_RENDER_QUANTUM", "not-a-number")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = load_settings()

    assert cfg.converter.max_bytes == 2048
    assert cfg.converter.decoder == "soundfile"
    assert cfg.converter.encoder == "mock"
    assert cfg.converter.render_quantum_frames == 128
    assert cfg.service.log_level == "DEBUG"
