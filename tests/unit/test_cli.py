"""Unit tests for the grant CLI and diagnostics handlers."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import ANALYSIS_JSON, FakeEmbeddingProvider, ScriptedTextModel, make_components, make_hwpx
from grantdesk.cli import diagnose, grants
from grantdesk.models.grant import GrantRecord
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.utils.errors import ModelInvocationError


class TestParser:
    def test_ingest_arguments(self) -> None:
        args = grants._build_parser().parse_args(["ingest", "공고.pdf", "--format", "pdf"])
        assert args.command == "ingest"
        assert args.file == "공고.pdf"
        assert args.format == "pdf"

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(SystemExit):
            grants._build_parser().parse_args(["ingest", "x.doc", "--format", "doc"])

    def test_delete_yes_flag(self) -> None:
        args = grants._build_parser().parse_args(["delete", "GRANT-1", "-y"])
        assert args.yes is True

    def test_no_command_exits_with_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            grants.main([])
        assert exc_info.value.code == 1
        assert "ingest" in capsys.readouterr().out


class TestGrantCommands:
    @pytest.mark.asyncio
    async def test_ingest_prints_progress_and_record(
        self,
        tmp_path: Path,
        gateway: PersistenceGateway,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "공고문.hwpx"
        path.write_bytes(make_hwpx({0: ["2025년 청년 창업 지원사업 모집 공고입니다."]}))
        components = make_components(gateway, [ScriptedTextModel("m", [ANALYSIS_JSON])])

        code = await grants._handle_ingest(Namespace(file=str(path), format=None), components)

        out = capsys.readouterr().out
        assert code == 0
        assert "[ 10%] parsing" in out
        assert "[100%] complete" in out
        assert "GRANT-1718000000000" in out
        assert "사업계획서" in out

    @pytest.mark.asyncio
    async def test_ingest_missing_file(self, gateway: PersistenceGateway, tmp_path: Path) -> None:
        components = make_components(gateway, [ScriptedTextModel("m")])
        code = await grants._handle_ingest(Namespace(file=str(tmp_path / "none.pdf"), format=None), components)
        assert code == 1

    @pytest.mark.asyncio
    async def test_list_with_samples(
        self, gateway: PersistenceGateway, capsys: pytest.CaptureFixture[str]
    ) -> None:
        components = make_components(gateway, [ScriptedTextModel("m")])

        code = await grants._handle_list(Namespace(seed_samples=True), components)

        out = capsys.readouterr().out
        assert code == 0
        assert "DTG2024" in out
        assert "Closed" in out

    @pytest.mark.asyncio
    async def test_list_empty(self, gateway: PersistenceGateway, capsys: pytest.CaptureFixture[str]) -> None:
        components = make_components(gateway, [ScriptedTextModel("m")])
        assert await grants._handle_list(Namespace(seed_samples=False), components) == 0
        assert "No grants stored." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_show_unknown(self, gateway: PersistenceGateway) -> None:
        components = make_components(gateway, [ScriptedTextModel("m")])
        assert await grants._handle_show(Namespace(grant_id="missing"), components) == 1

    @pytest.mark.asyncio
    async def test_ask_prints_answer(
        self, gateway: PersistenceGateway, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await gateway.save_grant(GrantRecord(id="G1", title="공고", description="설명"))
        components = make_components(gateway, [ScriptedTextModel("m", ["답변입니다"])])

        code = await grants._handle_ask(Namespace(grant_id="G1", question="질문"), components)

        assert code == 0
        assert "답변입니다" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_delete_confirmed(self, gateway: PersistenceGateway) -> None:
        await gateway.save_grant(GrantRecord(id="G1"))
        components = make_components(gateway, [ScriptedTextModel("m")])

        with patch("builtins.input", return_value="y"):
            code = await grants._handle_delete(Namespace(grant_id="G1", yes=False), components)

        assert code == 0
        assert await gateway.get_grant("G1") is None

    @pytest.mark.asyncio
    async def test_delete_aborted(self, gateway: PersistenceGateway) -> None:
        await gateway.save_grant(GrantRecord(id="G1"))
        components = make_components(gateway, [ScriptedTextModel("m")])

        with patch("builtins.input", return_value="n"):
            code = await grants._handle_delete(Namespace(grant_id="G1", yes=False), components)

        assert code == 1
        assert await gateway.get_grant("G1") is not None


class TestDiagnostics:
    @pytest.mark.asyncio
    async def test_embedding_dim_without_stored_vectors(self, gateway: PersistenceGateway) -> None:
        components = make_components(gateway, [ScriptedTextModel("m")])
        assert await diagnose.handle_check_embedding_dim(components) == 0

    @pytest.mark.asyncio
    async def test_embedding_dim_mismatch(
        self, gateway: PersistenceGateway, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await gateway.fallback.save_embeddings("G1", ["a"], [[0.1, 0.2, 0.3]])
        components = make_components(gateway, [ScriptedTextModel("m")], FakeEmbeddingProvider())

        assert await diagnose.handle_check_embedding_dim(components) == 1
        assert "MISMATCH" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_api_key_check(self, gateway: PersistenceGateway) -> None:
        ok = ScriptedTextModel("gemini-2.5-flash", ["안녕하세요"])
        components = make_components(gateway, [ok])
        assert await diagnose.handle_test_api_key(components) == 0

    @pytest.mark.asyncio
    async def test_api_key_check_reports_failures(
        self, gateway: PersistenceGateway, capsys: pytest.CaptureFixture[str]
    ) -> None:
        failing = ScriptedTextModel("gemini-2.5-flash", [ModelInvocationError("invalid key")])
        unavailable = ScriptedTextModel("gemini-1.5-flash", available=False)
        components = make_components(gateway, [failing, unavailable])

        assert await diagnose.handle_test_api_key(components) == 1
        out = capsys.readouterr().out
        assert "FAILED" in out
        assert "SKIPPED" in out

    @pytest.mark.asyncio
    async def test_debug_db_without_remote(self, gateway: PersistenceGateway) -> None:
        components = make_components(gateway, [ScriptedTextModel("m")])
        assert await diagnose.handle_debug_db(components) == 1

    @pytest.mark.asyncio
    async def test_debug_db_with_remote(self, capsys: pytest.CaptureFixture[str]) -> None:
        remote = MagicMock()
        remote.get_repository_name.return_value = "supabase"
        remote.count_grants = AsyncMock(return_value=7)
        remote.sample_embedding_dimension = AsyncMock(return_value=768)
        gateway = MagicMock()
        gateway.remote = remote

        assert await diagnose.handle_debug_db({"gateway": gateway}) == 0
        assert "7" in capsys.readouterr().out
