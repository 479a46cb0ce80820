"""Tests for the ingestion pipeline and seed file output."""

import json
from datetime import date
from unittest.mock import Mock

import pytest
from twlaw.config import Settings
from twlaw.errors import FetchError, ParseError
from twlaw.fetcher import FetchResult
from twlaw.ingest import (
    DatasetSource,
    clear_seed_directory,
    default_sources,
    load_dataset_text,
    run_ingestion,
    write_act,
)
from twlaw.types import ParsedAct, ParsedDefinition, ParsedProvision

TODAY = date(2026, 1, 1)


def _law(pcode: str, name: str, content: str = "條文內容。") -> dict:
    return {
        "LawName": name,
        "EngLawName": "",
        "LawURL": f"https://law.moj.gov.tw/LawClass/LawAll.aspx?pcode={pcode}",
        "LawCategory": "行政＞法務部",
        "LawModifiedDate": "20230531",
        "LawEffectiveDate": "20230531",
        "LawAbandonNote": "",
        "LawArticles": [
            {"ArticleType": "C", "ArticleNo": "", "ArticleContent": "第 一 章 總則"},
            {"ArticleType": "A", "ArticleNo": "第 1 條", "ArticleContent": content},
        ],
    }


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        source_dir=str(tmp_path / "source"),
        seed_dir=str(tmp_path / "seed"),
        archive_tool="zipfile",
    )


@pytest.fixture
def cached_datasets(settings):
    """Write extracted ChLaw.json / ChOrder.json caches so no fetch is needed."""
    law_source, order_source = default_sources(settings)
    law_source.json_path.parent.mkdir(parents=True, exist_ok=True)
    law_payload = {
        "UpdateDate": "2025/12/31",
        "Laws": [
            _law("I0050021", "個人資料保護法", "本法用詞，定義如下：\n一、個人資料：指自然人之姓名。\n二、處理：指資料之記錄。"),
            _law("A0000001", "舊版命令"),
        ],
    }
    order_payload = {
        "UpdateDate": "2025/12/30",
        "Laws": [_law("A0000001", "新版命令"), _law("B0000002", "另一命令")],
    }
    # Upstream files start with a byte-order mark
    law_source.json_path.write_text("\ufeff" + json.dumps(law_payload, ensure_ascii=False), encoding="utf-8")
    order_source.json_path.write_text(json.dumps(order_payload, ensure_ascii=False), encoding="utf-8")
    return law_source, order_source


def test_default_sources_merge_order(settings):
    labels = [source.label for source in default_sources(settings)]
    entries = [source.entry_name for source in default_sources(settings)]
    assert labels == ["law", "order"]
    assert entries == ["ChLaw.json", "ChOrder.json"]


def test_full_corpus_run_writes_one_file_per_pcode(settings, cached_datasets, tmp_path):
    fetcher = Mock()
    summary = run_ingestion(settings, skip_fetch=True, full_corpus=True, fetcher=fetcher, today=TODAY)

    fetcher.fetch_binary.assert_not_called()
    seed_dir = tmp_path / "seed"
    assert sorted(p.name for p in seed_dir.glob("*.json")) == [
        "01-personal-data-protection.json",
        "a0000001.json",
        "b0000002.json",
    ]
    assert summary.written == 3
    assert summary.target_count == 3
    assert summary.missing == []
    assert summary.total_provisions == 3
    assert summary.total_definitions == 2
    assert summary.record_counts == {"law": 2, "order": 2}
    assert summary.update_dates == {"law": "2025/12/31", "order": "2025/12/30"}

    # The order dataset comes later in merge order and wins
    merged = json.loads((seed_dir / "a0000001.json").read_text(encoding="utf-8"))
    assert merged["title"] == "新版命令"
    assert merged["id"] == "tw-a0000001"


def test_targeted_run_reports_missing_targets(settings, cached_datasets, tmp_path):
    summary = run_ingestion(settings, skip_fetch=True, full_corpus=False, fetcher=Mock(), today=TODAY)

    assert summary.target_count == 10
    assert summary.written == 1
    assert len(summary.missing) == 9
    assert "I0050021" not in {t.pcode for t in summary.missing}
    assert [p.name for p in (tmp_path / "seed").glob("*.json")] == ["01-personal-data-protection.json"]


def test_run_removes_stale_seed_files(settings, cached_datasets, tmp_path):
    seed_dir = tmp_path / "seed"
    seed_dir.mkdir(parents=True)
    (seed_dir / "stale.json").write_text("{}", encoding="utf-8")
    (seed_dir / "notes.txt").write_text("keep", encoding="utf-8")

    run_ingestion(settings, skip_fetch=True, full_corpus=False, fetcher=Mock(), today=TODAY)

    assert not (seed_dir / "stale.json").exists()
    assert (seed_dir / "notes.txt").exists()


def test_malformed_dataset_is_fatal(settings, cached_datasets):
    law_source, _ = cached_datasets
    law_source.json_path.write_text('{"UpdateDate": "x"}', encoding="utf-8")
    with pytest.raises(ParseError):
        run_ingestion(settings, skip_fetch=True, fetcher=Mock(), today=TODAY)


class TestLoadDatasetText:
    @pytest.fixture
    def source(self, tmp_path) -> DatasetSource:
        return DatasetSource(
            label="law",
            url="https://law.moj.gov.tw/api/ch/law/json",
            zip_path=tmp_path / "source" / "ch-law-json.zip",
            json_path=tmp_path / "source" / "ChLaw.json",
            entry_name="ChLaw.json",
        )

    def test_downloads_extracts_and_caches(self, source):
        fetcher = Mock()
        fetcher.fetch_binary.return_value = FetchResult(200, b"PK-zip-bytes", "application/zip", source.url)
        extractor = Mock()
        extractor.extract.return_value = '{"Laws": []}'

        text = load_dataset_text(source, fetcher, extractor, max_retries=2)

        assert text == '{"Laws": []}'
        fetcher.fetch_binary.assert_called_once_with(source.url, max_retries=2)
        extractor.extract.assert_called_once_with(source.zip_path, "ChLaw.json")
        assert source.zip_path.read_bytes() == b"PK-zip-bytes"
        assert source.json_path.read_text(encoding="utf-8") == '{"Laws": []}'

    def test_skip_fetch_uses_cache(self, source):
        source.json_path.parent.mkdir(parents=True)
        source.json_path.write_text('{"cached": true}', encoding="utf-8")
        fetcher = Mock()

        assert load_dataset_text(source, fetcher, Mock(), skip_fetch=True) == '{"cached": true}'
        fetcher.fetch_binary.assert_not_called()

    def test_skip_fetch_without_cache_downloads(self, source):
        fetcher = Mock()
        fetcher.fetch_binary.return_value = FetchResult(200, b"zip", "", source.url)
        extractor = Mock()
        extractor.extract.return_value = "{}"

        load_dataset_text(source, fetcher, extractor, skip_fetch=True)
        fetcher.fetch_binary.assert_called_once()

    def test_non_200_status_is_fatal(self, source):
        fetcher = Mock()
        fetcher.fetch_binary.return_value = FetchResult(404, b"", "text/html", source.url)
        with pytest.raises(FetchError, match="HTTP 404"):
            load_dataset_text(source, fetcher, Mock())


def test_write_act_format(tmp_path):
    act = ParsedAct(
        id="tw-pdpa",
        title="個人資料保護法",
        title_en="Personal Data Protection Act",
        short_name="PDPA",
        status="in_force",
        url="https://law.moj.gov.tw/LawClass/LawAll.aspx?pcode=I0050021",
        description="Official legislation text from Taiwan Laws & Regulations Database. Articles extracted: 1.",
        issued_date="2023-05-31",
        provisions=(ParsedProvision("art2", "2", "第 2 條", "本法用詞，定義如下："),),
        definitions=(ParsedDefinition("個人資料", "指自然人之姓名。", "art2"),),
    )
    path = tmp_path / "01-personal-data-protection.json"
    write_act(path, act)

    text = path.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert '\n  "id": "tw-pdpa",' in text
    assert "個人資料保護法" in text
    data = json.loads(text)
    assert list(data) == [
        "id", "type", "title", "title_en", "short_name", "status",
        "issued_date", "url", "description", "provisions", "definitions",
    ]
    assert data["definitions"][0]["source_provision"] == "art2"


def test_clear_seed_directory_only_removes_json(tmp_path):
    (tmp_path / "a.json").write_text("{}", encoding="utf-8")
    (tmp_path / "b.json").write_text("{}", encoding="utf-8")
    (tmp_path / "README.md").write_text("x", encoding="utf-8")
    assert clear_seed_directory(tmp_path) == 2
    assert [p.name for p in tmp_path.iterdir()] == ["README.md"]
