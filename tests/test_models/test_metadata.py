from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from lip.models.record import ToothRecord
from lip.models.version import Version
from lip.exceptions import ArchiveInvalidError
from lip.models.metadata import Placement, ResolvedArchive, ToothMetadata


def _raw(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "format_version": 1,
        "tooth": "github.com/tooth-hub/example",
        "version": "1.0.0",
        "dependencies": {"github.com/tooth-hub/lib": [[">=1.0.0", "<2.0.0"]]},
        "information": {"name": "Example", "author": "someone"},
        "placement": [{"source": "example.dll", "destination": "plugins/example.dll"}],
        "possession": ["plugins/example.dll"],
    }
    data.update(overrides)
    return data


@pytest.mark.unit
class TestToothMetadata:
    def test_from_json(self) -> None:
        metadata = ToothMetadata.from_json(json.dumps(_raw()))

        assert metadata.tooth_path == "github.com/tooth-hub/example"
        assert metadata.version == Version(1, 0, 0)
        assert list(metadata.dependencies) == ["github.com/tooth-hub/lib"]
        assert metadata.dependencies["github.com/tooth-hub/lib"].matches(Version(1, 4, 0))
        assert metadata.placement == [Placement("example.dll", "plugins/example.dll")]
        assert metadata.possession == ["plugins/example.dll"]
        assert metadata.information["name"] == "Example"

    def test_optional_fields_default_empty(self) -> None:
        metadata = ToothMetadata.from_dict(
            {"format_version": 1, "tooth": "example.com/x", "version": "0.1.0"}
        )

        assert metadata.dependencies == {}
        assert metadata.placement == []
        assert metadata.possession == []
        assert metadata.information == {}

    def test_dependency_order_is_kept(self) -> None:
        deps = {f"example.com/dep{i}": [["1.0.0"]] for i in (3, 1, 2)}

        metadata = ToothMetadata.from_dict(_raw(dependencies=deps))

        assert list(metadata.dependencies) == list(deps)

    def test_to_dict_matches_input(self) -> None:
        raw = _raw()

        assert ToothMetadata.from_dict(raw).to_dict() == raw

    @pytest.mark.parametrize(
        "overrides",
        [
            {"format_version": 2},
            {"tooth": ""},
            {"tooth": 5},
            {"version": "1.0"},
            {"dependencies": []},
            {"dependencies": {"bad path": [["1.0.0"]]}},
            {"dependencies": {"example.com/x": [[">=nope"]]}},
            {"placement": {"source": "a"}},
            {"placement": [{"source": "a"}]},
            {"possession": [""]},
            {"information": {"name": 1}},
        ],
    )
    def test_invalid(self, overrides: Dict[str, Any]) -> None:
        with pytest.raises(ArchiveInvalidError):
            ToothMetadata.from_dict(_raw(**overrides), source="x.tth")

    def test_invalid_json(self) -> None:
        with pytest.raises(ArchiveInvalidError) as exc_info:
            ToothMetadata.from_json("{not json", source="broken.tth")

        assert exc_info.value.archive_path == "broken.tth"

    def test_top_level_must_be_object(self) -> None:
        with pytest.raises(ArchiveInvalidError):
            ToothMetadata.from_json("[]")


@pytest.mark.unit
class TestResolvedArchive:
    def test_properties(self, tmp_path: Path) -> None:
        archive = ResolvedArchive(
            metadata=ToothMetadata.from_dict(_raw()),
            archive_path=tmp_path / "x.tth",
        )

        assert archive.tooth_path == "github.com/tooth-hub/example"
        assert archive.version == Version(1, 0, 0)
        assert str(archive) == "github.com/tooth-hub/example@1.0.0"

    def test_identity_hashing(self, tmp_path: Path) -> None:
        metadata = ToothMetadata.from_dict(_raw())
        first = ResolvedArchive(metadata, tmp_path / "x.tth")
        second = ResolvedArchive(metadata, tmp_path / "x.tth")

        assert len({first, second}) == 2


@pytest.mark.unit
class TestToothRecord:
    def test_json_keeps_manual_flag(self) -> None:
        record = ToothRecord(ToothMetadata.from_dict(_raw()), is_manually_installed=True)

        loaded = ToothRecord.from_json(record.to_json())

        assert loaded.is_manually_installed is True
        assert loaded.tooth_path == record.tooth_path
        assert loaded.version == record.version
        assert loaded.dependencies == ["github.com/tooth-hub/lib"]
        assert loaded.possession == ["plugins/example.dll"]

    def test_missing_flag_defaults_false(self) -> None:
        assert ToothRecord.from_json(json.dumps(_raw())).is_manually_installed is False

    @pytest.mark.parametrize(
        "content",
        [
            "[]",
            json.dumps({**_raw(), "is_manually_installed": "yes"}),
            json.dumps(_raw(version="bad")),
        ],
    )
    def test_invalid(self, content: str) -> None:
        with pytest.raises(ValueError):
            ToothRecord.from_json(content)
