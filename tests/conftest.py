"""Shared fixtures for lip tests.

Tooth archives are built on the fly as ZIP files under ``tmp_path``.
"""

from __future__ import annotations

import json
import shutil
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from lip.config import LipConfig
from lip.core.archive import read_metadata
from lip.core.installer import ToothInstaller
from lip.core.record_store import RecordStore
from lip.models.metadata import ResolvedArchive
from lip.models.version import Version
from lip.exceptions import PackageNotFoundError

ToothFactory = Callable[..., Path]


def tooth_json(
    tooth_path: str,
    version: str = "1.0.0",
    *,
    dependencies: Optional[Dict[str, List[List[str]]]] = None,
    placement: Optional[List[Dict[str, str]]] = None,
    possession: Optional[List[str]] = None,
    information: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    return {
        "format_version": 1,
        "tooth": tooth_path,
        "version": version,
        "dependencies": dependencies or {},
        "information": information or {},
        "placement": placement or [],
        "possession": possession or [],
    }


def write_tooth(
    archive_path: Path,
    metadata: Dict[str, Any],
    files: Optional[Dict[str, bytes]] = None,
    *,
    prefix: str = "",
) -> Path:
    """Write a tooth archive holding ``metadata`` and ``files``."""
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive_path, "w") as zf:
        zf.writestr(prefix + "tooth.json", json.dumps(metadata))
        for name, data in (files or {}).items():
            zf.writestr(prefix + name, data)
    return archive_path


@pytest.fixture
def make_tooth(tmp_path: Path) -> ToothFactory:
    """Return a factory building tooth archives in ``tmp_path/archives``.

    Each placement destination gets a file named after it, and possession
    defaults to the placement destinations.
    """

    def factory(
        tooth_path: str,
        version: str = "1.0.0",
        *,
        dependencies: Optional[Dict[str, List[List[str]]]] = None,
        files: Optional[Dict[str, str]] = None,
        possession: Optional[List[str]] = None,
        name: Optional[str] = None,
    ) -> Path:
        files = files or {}
        placement = [
            {"source": source, "destination": destination}
            for source, destination in files.items()
        ]
        metadata = tooth_json(
            tooth_path,
            version,
            dependencies=dependencies,
            placement=placement,
            possession=possession if possession is not None else list(files.values()),
        )
        payload = {source: f"{tooth_path}:{source}".encode() for source in files}
        file_name = name or f"{tooth_path.replace('/', '_')}-{version}.tth"
        return write_tooth(tmp_path / "archives" / file_name, metadata, payload)

    return factory


@pytest.fixture
def make_archive(make_tooth: ToothFactory) -> Callable[..., ResolvedArchive]:
    """Like :func:`make_tooth` but returns a :class:`ResolvedArchive`."""

    def factory(tooth_path: str, version: str = "1.0.0", **kwargs: Any) -> ResolvedArchive:
        path = make_tooth(tooth_path, version, **kwargs)
        return ResolvedArchive(metadata=read_metadata(path), archive_path=path)

    return factory


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def record_store(workspace: Path) -> RecordStore:
    return RecordStore(workspace / ".lip" / "records")


@pytest.fixture
def installer(record_store: RecordStore, workspace: Path) -> ToothInstaller:
    return ToothInstaller(record_store, workspace)


class FakeRepository:
    """In-memory stand-in for :class:`ToothRepository`.

    ``publish`` registers an archive file under a tooth path and version;
    the listing order is the publication order unless overridden.
    """

    def __init__(self) -> None:
        self.archives: Dict[Tuple[str, str], Path] = {}
        self.listing: Dict[str, List[Version]] = {}
        self.urls: Dict[str, Path] = {}
        self.downloads: List[str] = []
        self.list_calls: List[str] = []

    def publish(
        self, tooth_path: str, version: str, archive: Path, *, latest: bool = False
    ) -> None:
        """Register ``archive``; ``latest`` lists it ahead of earlier versions."""
        self.archives[(tooth_path, version)] = archive
        versions = self.listing.setdefault(tooth_path, [])
        versions.insert(0 if latest else len(versions), Version.parse(version))

    async def list_versions(self, tooth_path: str) -> List[Version]:
        self.list_calls.append(tooth_path)
        if tooth_path not in self.listing:
            raise PackageNotFoundError("not found", tooth_path=tooth_path, status_code=404)
        return self.listing[tooth_path]

    def download_url(self, tooth_path: str, version: Version) -> str:
        url = f"mem://{tooth_path}/{version}"
        self.urls[url] = self.archives[(tooth_path, str(version))]
        return url

    async def download(
        self, url: str, destination: Path, *, progress_callback: Optional[Callable] = None
    ) -> Path:
        self.downloads.append(url)
        shutil.copyfile(self.urls[url], destination)
        return destination


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()



@pytest.fixture
def lip_config(workspace: Path, tmp_path: Path) -> LipConfig:
    return LipConfig(workspace_dir=workspace, cache_dir=tmp_path / "cache")


@pytest.fixture
def config_file(lip_config: LipConfig, tmp_path: Path) -> Path:
    """A ``lip.toml`` pointing at the test workspace and cache."""
    path = tmp_path / "lip.toml"
    path.write_text(
        "[lip]\n"
        f"workspace = '{lip_config.workspace_dir.as_posix()}'\n"
        f"cache_dir = '{lip_config.cache_dir.as_posix()}'\n",
        encoding="utf-8",
    )
    return path
