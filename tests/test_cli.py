"""Tests for the verification CLI."""

import base64
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from docverify.cli import (
    main,
    process_onboarding_image,
    scan_document,
    verify_documents,
)
from docverify.onboarding.processor import (
    AutoAction,
    AutoVerifyDecision,
    ClassificationResult,
    FieldExtractionResult,
    ProcessedDocument,
)
from docverify.utils.config import AppConfig
from docverify.utils.exceptions import ConfigurationError
from docverify.validation.cross_reference import (
    AggregateVerification,
    OverallStatus,
)
from docverify.validation.verifier import (
    DocumentScan,
    DocumentStatus,
    ScanMethod,
    VerificationResult,
)


def _make_aggregate() -> AggregateVerification:
    results = [
        VerificationResult(
            document_type=t,
            extracted_text="",
            confidence=0.7,
            status=DocumentStatus.VALID,
            company_name="ACME CORP PH INC",
        )
        for t in ("sec", "bir")
    ]
    return AggregateVerification(
        overall_status=OverallStatus.VERIFIED,
        documents=results,
        summary='Processed 2 documents for "Acme".',
    )


def _make_components() -> MagicMock:
    components = MagicMock()
    components.cross_reference.verify_agency_documents.return_value = (
        _make_aggregate()
    )
    components.onboarding.process.return_value = ProcessedDocument(
        classification=ClassificationResult("nbi", 1.0),
        extraction=FieldExtractionResult(
            success=True,
            document_type="nbi",
            extracted_data={"full_name": "JUAN DELA CRUZ", "clearance_number": "X1"},
        ),
        points=15,
        decision=AutoVerifyDecision(True, "All checks passed"),
        action=AutoAction.AUTO_APPROVED,
    )
    components.verifier.scan.return_value = DocumentScan(
        document_type="bir",
        method=ScanMethod.GEMINI_ONLY,
        label="BIR Form 2303",
        is_valid=True,
    )
    return components


@pytest.fixture
def documents(tmp_path: Path) -> list[Path]:
    sec = tmp_path / "sec.pdf"
    sec.write_bytes(b"%PDF-1.4 sec")
    bir = tmp_path / "bir.png"
    bir.write_bytes(b"\x89PNG bir")
    return [sec, bir]


class TestVerifyDocuments:
    """Tests for agency verification from files."""

    @patch("docverify.cli.build_components")
    def test_result_shape(
        self, mock_build: MagicMock, documents: list[Path]
    ) -> None:
        components = _make_components()
        mock_build.return_value = components

        result = verify_documents(documents, "Acme", ["sec", "bir"])

        assert result["overall_status"] == "verified"
        assert [d["filename"] for d in result["documents"]] == ["sec.pdf", "bir.png"]
        assert result["documents"][0]["status"] == "valid"
        submitted, agency = (
            components.cross_reference.verify_agency_documents.call_args[0]
        )
        assert agency == "Acme"
        assert [d.type for d in submitted] == ["sec", "bir"]
        assert [d.mime_type for d in submitted] == ["application/pdf", "image/png"]
        assert submitted[0].content == b"%PDF-1.4 sec"

    @patch("docverify.cli.build_components")
    def test_types_default_to_unknown(
        self, mock_build: MagicMock, documents: list[Path]
    ) -> None:
        components = _make_components()
        mock_build.return_value = components

        verify_documents(documents, "Acme")

        submitted = components.cross_reference.verify_agency_documents.call_args[0][0]
        assert [d.type for d in submitted] == ["unknown", "unknown"]


class TestProcessOnboardingImage:
    @patch("docverify.cli.build_components")
    def test_hint_passed_through(self, mock_build: MagicMock, tmp_path: Path) -> None:
        components = _make_components()
        mock_build.return_value = components
        image = tmp_path / "nbi.jpg"
        image.write_bytes(b"\xff\xd8jpeg")

        result = process_onboarding_image(image, "nbi")

        components.onboarding.process.assert_called_once_with(
            base64.b64encode(b"\xff\xd8jpeg").decode(), "nbi"
        )
        assert result["filename"] == "nbi.jpg"
        assert result["points"] == 15
        assert result["action"] == "auto_approved"


class TestScanDocument:
    @patch("docverify.cli.build_components")
    def test_scan_result(self, mock_build: MagicMock, tmp_path: Path) -> None:
        components = _make_components()
        mock_build.return_value = components
        permit = tmp_path / "cor.png"
        permit.write_bytes(b"\x89PNG cor")

        result = scan_document(permit)

        components.verifier.scan.assert_called_once_with(b"\x89PNG cor", "image/png")
        assert result["filename"] == "cor.png"
        assert result["scan"]["document_type"] == "bir"
        assert result["extraction"]["method"] == "gemini_only"


class TestMain:
    """Tests for argument handling and exit codes."""

    @patch("docverify.cli.build_components")
    def test_verify_writes_output(
        self, mock_build: MagicMock, documents: list[Path], tmp_path: Path
    ) -> None:
        mock_build.return_value = _make_components()
        output = tmp_path / "out" / "result.json"

        main(
            ["verify", *map(str, documents), "-a", "Acme", "-t", "sec", "-t", "bir"]
            + ["-o", str(output)]
        )

        data = json.loads(output.read_text())
        assert data["overall_status"] == "verified"
        assert len(data["documents"]) == 2

    @patch("docverify.cli.build_components")
    def test_onboard_writes_output(
        self, mock_build: MagicMock, tmp_path: Path
    ) -> None:
        mock_build.return_value = _make_components()
        image = tmp_path / "nbi.jpg"
        image.write_bytes(b"jpeg")
        output = tmp_path / "onboard.json"

        main(["onboard", str(image), "--hint", "nbi", "-o", str(output)])

        assert json.loads(output.read_text())["document_type"] == "nbi"

    def test_missing_file_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["verify", str(tmp_path / "missing.pdf"), "-a", "Acme"])
        assert exc_info.value.code == 1

    def test_type_count_mismatch_exits(self, documents: list[Path]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["verify", *map(str, documents), "-a", "Acme", "-t", "sec"])
        assert exc_info.value.code == 1

    def test_agency_required(self, documents: list[Path]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["verify", *map(str, documents)])
        assert exc_info.value.code == 2

    def test_unknown_hint_rejected(self, tmp_path: Path) -> None:
        image = tmp_path / "x.jpg"
        image.write_bytes(b"jpeg")
        with pytest.raises(SystemExit):
            main(["onboard", str(image), "--hint", "selfie"])

    @patch("docverify.cli.build_components")
    def test_configuration_error_exits(
        self,
        mock_build: MagicMock,
        documents: list[Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_build.return_value.cross_reference.verify_agency_documents.side_effect = (
            ConfigurationError("GOOGLE_SERVICE_ACCOUNT_KEY is not set")
        )

        with pytest.raises(SystemExit) as exc_info:
            main(["verify", *map(str, documents), "-a", "Acme"])

        assert exc_info.value.code == 2
        assert "GOOGLE_SERVICE_ACCOUNT_KEY" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "verify" in capsys.readouterr().out

    @patch("docverify.cli.build_components")
    def test_scan_writes_output(self, mock_build: MagicMock, tmp_path: Path) -> None:
        mock_build.return_value = _make_components()
        document = tmp_path / "cor.pdf"
        document.write_bytes(b"%PDF")
        output = tmp_path / "scan.json"

        main(["scan", str(document), "-o", str(output)])

        data = json.loads(output.read_text())
        assert data["scan"]["label"] == "BIR Form 2303"
        assert data["extraction"]["text_length"] == 0

    @patch("docverify.cli.build_components")
    @patch("docverify.cli.setup_logging")
    @patch("docverify.cli.load_config")
    def test_config_loaded_once_and_sets_log_level(
        self,
        mock_load: MagicMock,
        mock_setup: MagicMock,
        mock_build: MagicMock,
        documents: list[Path],
        tmp_path: Path,
    ) -> None:
        config = AppConfig(log_level="DEBUG")
        mock_load.return_value = config
        mock_build.return_value = _make_components()
        config_file = tmp_path / "config.yaml"

        main(
            ["-c", str(config_file), "verify", *map(str, documents), "-a", "Acme"]
            + ["-o", str(tmp_path / "out.json")]
        )

        mock_load.assert_called_once_with(config_file)
        mock_setup.assert_called_once_with("DEBUG")
        mock_build.assert_called_once_with(config)

    @patch("docverify.cli.build_components")
    @patch("docverify.cli.setup_logging")
    @patch("docverify.cli.load_config")
    def test_log_level_flag_overrides_config(
        self,
        mock_load: MagicMock,
        mock_setup: MagicMock,
        mock_build: MagicMock,
        tmp_path: Path,
    ) -> None:
        mock_load.return_value = AppConfig(log_level="DEBUG")
        mock_build.return_value = _make_components()
        image = tmp_path / "nbi.jpg"
        image.write_bytes(b"jpeg")

        main(["--log-level", "warning", "onboard", str(image)])

        mock_setup.assert_called_once_with("WARNING")

    def test_scan_missing_file_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["scan", str(tmp_path / "missing.pdf")])
        assert exc_info.value.code == 1
