"""Tests for the exprguard-check command line."""

import io
import json
from pathlib import Path

from exprguard.batch import main


class TestSingleScript:
    """--script mode."""

    def test_accepted(self, capsys) -> None:
        """An accepted script prints OK and exits 0."""
        assert main(["--script", "1 + 2"]) == 0
        assert capsys.readouterr().out.strip() == "OK"

    def test_rejected(self, capsys) -> None:
        """A rejected script prints start-end: message and exits 1."""
        assert main(["--script", "1/x"]) == 1
        assert capsys.readouterr().out.strip() == "2-3: unidetified: x"

    def test_allow(self, capsys) -> None:
        """--allow marks an expression as an allowed variable."""
        assert main(["--script", "x.value.length", "--allow", "x.value"]) == 0

    def test_policy_file(self, policy_file: Path) -> None:
        """--policy loads namespace method restrictions."""
        assert main(["--script", "Math.random()", "--policy", str(policy_file)]) == 1
        assert main(["--script", "Math.abs(1)", "--policy", str(policy_file)]) == 0


class TestBatchMode:
    """--input mode."""

    def test_output_file(self, batch_file: Path, tmp_path: Path) -> None:
        """--output writes the JSON response, creating directories."""
        out_path = tmp_path / "out" / "result.json"
        code = main(["--input", str(batch_file), "--output", str(out_path)])

        assert code == 1
        assert json.loads(out_path.read_text()) == [
            [],
            [{"start": 8, "end": 19, "message": "unIdentified member property"}],
        ]

    def test_stdout_and_stderr(self, batch_file: Path, capsys) -> None:
        """Response goes to stdout, summary to stderr."""
        main(["--input", str(batch_file), "--workers", "2"])
        captured = capsys.readouterr()
        assert len(json.loads(captured.out)) == 2
        assert "Rejected 1 of 2 scripts: 1" in captured.err

    def test_stdin(self, monkeypatch, capsys) -> None:
        """Without --input the batch is read from stdin."""
        monkeypatch.setattr("sys.stdin", io.StringIO('[{"script": "Math.E"}]'))
        assert main([]) == 0
        assert json.loads(capsys.readouterr().out) == [[]]

    def test_malformed_payload(self, tmp_path: Path, capsys) -> None:
        """A payload failing the schema exits 2."""
        path = tmp_path / "bad.json"
        path.write_text('{"script": 1}')
        assert main(["--input", str(path)]) == 2
        assert "Invalid batch" in capsys.readouterr().err

    def test_audit_log(self, batch_file: Path, tmp_path: Path) -> None:
        """--audit-log appends the batch summary."""
        log_path = tmp_path / "audit.log"
        main(["--input", str(batch_file), "--audit-log", str(log_path)])
        assert "[BATCH] scripts=2 accepted=1 rejected=1" in log_path.read_text()
