# This library is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This library is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this library; if not, see <http://www.gnu.org/licenses/>.


"""
Brew Bridge - Type Definitions

Records passed between the gateways and their callers, plus typing
compatible definitions for the PNC and Koji dict types

:license: GPL v3
"""


from enum import Enum
from koji_types import BuildInfo, TagInfo, UserInfo
from typing import (
    Any, Dict, List, NamedTuple, Optional, Set, TypedDict, )


__all__ = (
    "BrewBuild",
    "BuildArtifacts",
    "BuildImportResult",
    "BuildImportStatus",
    "BuildInfo",
    "KojiImportResult",
    "NVR",
    "PNCArtifact",
    "PNCArtifactInfo",
    "PNCBuild",
    "PNCBuildConfigRevisionInfo",
    "PNCBuildInfo",
    "PNCMilestoneInfo",
    "PNCPage",
    "PNCProductVersionInfo",
    "TagInfo",
    "UserInfo",
)


class NVR(NamedTuple):
    """
    Name, Version, Release identity of a build. The name may be a
    maven-style ``groupId:artifactId``, which is mangled into a valid
    koji package name via `koji_name`
    """

    name: str
    version: str
    release: str


    @property
    def koji_name(self) -> str:
        return self.name.replace(":", "-")


    @property
    def nvr(self) -> str:
        return f"{self.koji_name}-{self.version}-{self.release}"


    def as_dict(self) -> Dict[str, str]:
        """
        The form accepted by koji's ``getBuild`` for an NVR lookup
        """

        return {
            "name": self.koji_name,
            "version": self.version,
            "release": self.release,
        }


    @classmethod
    def from_buildinfo(cls, binfo: BuildInfo) -> "NVR":
        return cls(binfo["name"], binfo["version"], binfo["release"])


    def __str__(self):
        return self.nvr


class BrewBuild(NamedTuple):
    """
    A build in Brew which was imported by PNC
    """

    id: int
    nvr_info: NVR


    @property
    def name(self) -> str:
        return self.nvr_info.name


    @property
    def koji_name(self) -> str:
        return self.nvr_info.koji_name


    @property
    def version(self) -> str:
        return self.nvr_info.version


    @property
    def release(self) -> str:
        return self.nvr_info.release


    @property
    def nvr(self) -> str:
        return self.nvr_info.nvr


class PNCArtifact(NamedTuple):
    """
    An artifact either built by or used as a dependency of a PNC
    build. `deploy_path` never has a leading separator.
    """

    id: str
    identifier: str
    deploy_path: str
    md5: Optional[str]
    deploy_url: Optional[str]
    size: int
    quality: Optional[str]


class BuildArtifacts(NamedTuple):
    built: Set[PNCArtifact]
    dependencies: Set[PNCArtifact]


class PNCBuild(NamedTuple):
    id: str
    status: str
    build_config_name: Optional[str]
    scm_revision: Optional[str]


class BuildImportStatus(Enum):
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    ERROR = "ERROR"


class BuildImportResult():
    """
    Outcome of importing a single PNC build record into Brew.

    The status is FAILED when any artifact failed to upload, and ERROR
    when Brew produced no build at all. ERROR takes precedence.
    """

    build_record_id: str
    brew_build_id: Optional[int]
    brew_build_url: Optional[str]
    status: BuildImportStatus
    error_message: Optional[str]


    def __init__(self, build_record_id: str,
                 status: BuildImportStatus = BuildImportStatus.SUCCESSFUL):

        self.build_record_id = build_record_id
        self.brew_build_id = None
        self.brew_build_url = None
        self.status = status
        self.error_message = None


    def to_dict(self) -> Dict[str, Any]:
        return {
            "buildRecordId": self.build_record_id,
            "brewBuildId": self.brew_build_id,
            "brewBuildUrl": self.brew_build_url,
            "status": self.status.value,
            "errorMessage": self.error_message,
        }


    def __eq__(self, other):
        if not isinstance(other, BuildImportResult):
            return NotImplemented
        return self.to_dict() == other.to_dict()


    def __repr__(self):
        return (f"BuildImportResult({self.build_record_id!r},"
                f" status={self.status.name},"
                f" brew_build_id={self.brew_build_id!r})")


class KojiImportResult(NamedTuple):
    """
    Result of a content generator import. `build_info` is None when
    the hub produced no build, and `upload_errors` maps the relative
    filename of each file which could not be uploaded to the exception
    raised while uploading it.
    """

    build_info: Optional[BuildInfo]
    upload_errors: Dict[str, BaseException]


class PNCProductVersionInfo(TypedDict):
    id: str
    version: str
    attributes: Dict[str, str]


class PNCMilestoneInfo(TypedDict):
    id: str
    version: str
    productVersion: PNCProductVersionInfo


class PNCBuildConfigRevisionInfo(TypedDict):
    id: str
    name: str


class PNCBuildInfo(TypedDict):
    id: str
    status: str
    buildConfigRevision: PNCBuildConfigRevisionInfo
    scmRevision: Optional[str]
    attributes: Dict[str, str]


class PNCArtifactInfo(TypedDict):
    id: str
    identifier: str
    deployPath: str
    md5: Optional[str]
    deployUrl: Optional[str]
    size: Optional[int]
    artifactQuality: Optional[str]


class PNCPage(TypedDict):
    pageIndex: int
    pageSize: int
    totalPages: int
    totalHits: int
    content: List[Any]


#
# The end.
