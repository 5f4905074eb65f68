"""
Tests for the benchmark CLI.
"""

from pathlib import Path

import pytest

from pq_envelope.benchmark import main, run_benchmark
from pq_envelope.config import ENV_KEM, ENV_SIGNATURE


@pytest.fixture
def fast_env(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    clean_env.setenv(ENV_KEM, "ML-KEM-512")
    clean_env.setenv(ENV_SIGNATURE, "ML-DSA-44")
    return tmp_path / "missing.env"


def test_run_benchmark(fast_env: Path, capsys: pytest.CaptureFixture) -> None:
    code = run_benchmark(recipients=2, iterations=1, size=64, env_file=str(fast_env))

    out = capsys.readouterr().out
    assert code == 0
    assert "ML-KEM-512 + ML-DSA-44" in out
    assert "[OK] 2 open(s) recovered the original plaintext" in out
    assert "Recipients: 2" in out
    assert "BENCHMARK COMPLETE" in out


def test_invalid_configuration(
    clean_env: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture
) -> None:
    clean_env.setenv(ENV_KEM, "RSA-2048")

    assert run_benchmark(env_file=str(tmp_path / "missing.env")) == 1
    assert "ERROR" in capsys.readouterr().out


def test_main_exit_code(fast_env: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--recipients", "1", "--iterations", "1", "--size", "0", "--env-file", str(fast_env)])
    assert exc_info.value.code == 0


@pytest.mark.parametrize("argv", [["--recipients", "0"], ["--iterations", "-1"], ["--size", "-5"]])
def test_main_rejects_bad_arguments(argv: list) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    assert exc_info.value.code == 2
