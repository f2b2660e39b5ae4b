"""Tests for metacheck.orchestrator."""

from __future__ import annotations

import http.client
import json
from pathlib import Path

import pytest

from metacheck.config import load_config
from metacheck.contract import CheckedContract
from metacheck.fetch import RemoteFetcher
from metacheck.hashing import keccak256
from metacheck.metadata import NoMetadataFoundError
from metacheck.models import CandidateFile
from metacheck.orchestrator import Orchestrator
from tests._fixtures.metadata_builder import (
    STORAGE_PATH,
    STORAGE_SOURCE,
    MetadataBuilder,
    make_zip,
    storage_metadata,
)
from tests._fixtures.transport import RecordingTransport

STORAGE_BYTES = STORAGE_SOURCE.encode("utf-8")


def _summary(contract: CheckedContract) -> dict:
    return {
        "name": contract.name,
        "compiled_path": contract.compiled_path,
        "found": contract.found,
        "missing": {path: entry.to_dict() for path, entry in contract.missing.items()},
        "invalid": contract.invalid,
        "valid": contract.is_valid(),
    }


def test_source_matched_by_hash_yields_valid_contract() -> None:
    files = [
        CandidateFile(storage_metadata().to_bytes(), "metadata.json"),
        CandidateFile(STORAGE_BYTES, "some/other/name.sol"),
    ]

    contracts = Orchestrator(fetch=False).check_files(files)

    assert len(contracts) == 1
    contract = contracts[0]
    assert contract.compiled_path == STORAGE_PATH
    assert contract.name == "Storage"
    assert contract.found == {STORAGE_PATH: STORAGE_SOURCE}
    assert contract.missing == {}
    assert contract.invalid == {}
    assert contract.is_valid()


def test_absent_source_is_reported_missing_without_failing_batch() -> None:
    files = [CandidateFile(storage_metadata().to_bytes(), "metadata.json")]

    contracts = Orchestrator().check_files(files)

    assert len(contracts) == 1
    contract = contracts[0]
    assert not contract.is_valid()
    assert contract.found == {}
    assert {path: entry.to_dict() for path, entry in contract.missing.items()} == {
        STORAGE_PATH: {"keccak256": keccak256(STORAGE_SOURCE), "urls": []}
    }
    assert contract.invalid == {}


def test_batch_without_metadata_fails_fatally() -> None:
    files = [CandidateFile(STORAGE_BYTES, "1_Storage.sol")]

    with pytest.raises(NoMetadataFoundError):
        Orchestrator(fetch=False).check_files(files)


def test_inline_sources_round_trip_to_valid_contract() -> None:
    builder = (
        MetadataBuilder()
        .declare(STORAGE_PATH, STORAGE_SOURCE, inline=STORAGE_SOURCE)
        .declare("lib/Helper.sol", "library Helper {}\n", inline="library Helper {}\n")
    )

    contracts = Orchestrator(fetch=False).check_files([CandidateFile(builder.to_bytes())])

    assert contracts[0].is_valid()
    assert contracts[0].missing == {}
    assert contracts[0].invalid == {}
    assert contracts[0].found == {
        STORAGE_PATH: STORAGE_SOURCE,
        "lib/Helper.sol": "library Helper {}\n",
    }


def test_wrong_inline_content_is_invalid_despite_matching_file() -> None:
    builder = storage_metadata(inline="contract Storage {}\n")
    files = [CandidateFile(builder.to_bytes()), CandidateFile(STORAGE_BYTES)]

    contract = Orchestrator(fetch=False).check_files(files)[0]

    assert list(contract.invalid) == [STORAGE_PATH]
    assert contract.found == {}


def test_archive_input_matches_unpacked_input() -> None:
    metadata = storage_metadata().to_bytes()
    archive = make_zip({"metadata.json": metadata, "contracts/1_Storage.sol": STORAGE_BYTES})
    orchestrator = Orchestrator(fetch=False)

    from_archive = orchestrator.check_files([CandidateFile(archive, "bundle.zip")])
    unpacked = orchestrator.check_files(
        [CandidateFile(metadata, "metadata.json"), CandidateFile(STORAGE_BYTES, "1_Storage.sol")]
    )

    assert [_summary(contract) for contract in from_archive] == [
        _summary(contract) for contract in unpacked
    ]


def test_corrupted_archive_is_kept_as_regular_file() -> None:
    archive = make_zip({"a.sol": b"contract Original {}"})
    corrupted = archive.replace(b"contract Original {}", b"contract Tampered {}")
    files = [CandidateFile(storage_metadata().to_bytes()), CandidateFile(corrupted, "broken.zip")]

    contracts = Orchestrator(fetch=False).check_files(files)

    assert len(contracts) == 1
    assert list(contracts[0].missing) == [STORAGE_PATH]


def test_each_metadata_document_gets_an_independent_index(transport: RecordingTransport) -> None:
    oz_path = "@openzeppelin/contracts/Storage.sol"
    fetching = (
        MetadataBuilder({oz_path: "Storage"})
        .declare(oz_path, STORAGE_SOURCE, urls=["dweb:/ipfs/QmCid"])
    )
    local_only = MetadataBuilder({"local/Storage.sol": "Storage"}).declare(
        "local/Storage.sol", STORAGE_SOURCE
    )
    orchestrator = Orchestrator(fetcher=RemoteFetcher(transport=transport))

    first, second = orchestrator.check_files(
        [CandidateFile(fetching.to_bytes(), "a.json"), CandidateFile(local_only.to_bytes(), "b.json")]
    )

    assert first.is_valid()
    assert not second.is_valid()
    assert list(second.missing) == ["local/Storage.sol"]
    assert len(transport.urls) == 1


def test_fetch_disabled_never_contacts_origins(transport: RecordingTransport) -> None:
    oz_path = "@openzeppelin/contracts/Storage.sol"
    builder = MetadataBuilder({oz_path: "Storage"}).declare(
        oz_path, STORAGE_SOURCE, urls=["dweb:/ipfs/QmCid"]
    )
    orchestrator = Orchestrator(fetch=False, fetcher=RemoteFetcher(transport=transport))

    contract = orchestrator.check_files([CandidateFile(builder.to_bytes())])[0]

    assert list(contract.missing) == [oz_path]
    assert transport.urls == []


def test_check_paths_reads_directories_and_records_ignored(tmp_path: Path) -> None:
    project = tmp_path / "single"
    project.mkdir()
    (project / "metadata.json").write_bytes(storage_metadata().to_bytes())
    (project / "1_Storage.sol").write_bytes(STORAGE_BYTES)
    missing_path = str(tmp_path / "foobar.sol")
    ignoring: list[str] = []

    contracts = Orchestrator(fetch=False).check_paths([project, missing_path], ignoring)

    assert ignoring == [missing_path]
    assert len(contracts) == 1
    assert contracts[0].is_valid()


def test_check_paths_rejects_nonexistent_path_without_ignore_list(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="nonexistent path"):
        Orchestrator(fetch=False).check_paths([tmp_path / "nope"])


def test_from_config_applies_fetch_settings(tmp_path: Path) -> None:
    (tmp_path / ".metacheck.yml").write_text(
        json.dumps(
            {
                "fetch": {"enabled": False, "request_timeout": 5, "ipfs_gateway": "https://gw.test/ipfs/"},
                "exclude_paths": ["vendor/"],
            }
        ),
        encoding="utf-8",
    )

    orchestrator = Orchestrator.from_config(load_config(tmp_path))

    assert orchestrator.fetch is False
    assert orchestrator.fetcher.ipfs_gateway == "https://gw.test/ipfs/"
    assert orchestrator.fetcher.request_timeout == 5.0
    assert orchestrator.path_scanner.exclude_paths == ["vendor/"]


def test_document_with_hashless_source_yields_invalid_contract() -> None:
    payload = storage_metadata().build()
    payload["sources"][STORAGE_PATH] = {"urls": []}  # type: ignore[index]

    contracts = Orchestrator(fetch=False).check_files(
        [CandidateFile(json.dumps(payload).encode("utf-8"), "metadata.json"), CandidateFile(STORAGE_BYTES)]
    )

    assert len(contracts) == 1
    assert not contracts[0].is_valid()
    assert {path: entry.to_dict() for path, entry in contracts[0].missing.items()} == {
        STORAGE_PATH: {"keccak256": "", "urls": []}
    }


def test_unreadable_inputs_do_not_abort_the_batch(monkeypatch: pytest.MonkeyPatch) -> None:
    github_path = "https://github.com/acme/token/blob/main/My Token.sol"
    builder = (
        MetadataBuilder()
        .declare(STORAGE_PATH, STORAGE_SOURCE)
        .declare(github_path, "contract Token {}", urls=[])
    )
    encrypted = bytearray(make_zip({"a.sol": b"contract A {}"}))
    central = encrypted.index(b"PK\x01\x02")
    encrypted[central + 8] |= 0x01
    requested = []

    def fake_urlopen(request, timeout=None):  # type: ignore[no-untyped-def]
        requested.append(request.full_url)
        raise http.client.IncompleteRead(b"contract", 100)

    monkeypatch.setattr("metacheck.fetch.fetcher.urlopen", fake_urlopen)

    contracts = Orchestrator().check_files(
        [
            CandidateFile(builder.to_bytes(), "metadata.json"),
            CandidateFile(STORAGE_BYTES, "1_Storage.sol"),
            CandidateFile(("[" + "9" * 5000 + "]").encode("utf-8"), "data.json"),
            CandidateFile(bytes(encrypted), "secret.zip"),
        ]
    )

    assert len(contracts) == 1
    assert contracts[0].found == {STORAGE_PATH: STORAGE_SOURCE}
    assert list(contracts[0].missing) == [github_path]
    assert requested == ["https://raw.githubusercontent.com/acme/token/main/My%20Token.sol"]
