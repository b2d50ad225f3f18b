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
Brew Bridge - Brew Session Gateway

Adapter over a Brew (koji) hub for finding, tagging, and importing
builds which originate from PNC. Every operation runs in its own
authenticated session.

:license: GPL v3
"""


from koji import GenericError
from logging import getLogger
from requests import RequestException
from typing import Any, Callable, Dict, Optional

from . import (
    KOJI_ERRORS,
    ConflictingBuild, ImportFailure, KojiCommunicationFailure,
    ManagedClientSession, ProfileClientSession,
    TaggingFailure, TagPermissionDenied, )
from .common import BridgeConfig
from .imports import ImportFiles, import_to_koji
from .types import (
    NVR, BrewBuild, BuildImportResult, BuildImportStatus, BuildInfo,
    KojiImportResult, )


__all__ = (
    "BUILD_SYSTEM",
    "BUILD_TAG_SUFFIX",
    "PNC",

    "BrewSessionGateway",

    "check_pnc_imported",
)


logger = getLogger(__name__)


BUILD_TAG_SUFFIX = "-candidate"
"""
builds are tagged into the candidate variant of a tag, while their
packages are added to the tag itself
"""

BUILD_SYSTEM = "build_system"
"""
key in a build's extra data naming the system that produced it
"""

PNC = "PNC"


SessionFactory = Callable[[], ManagedClientSession]


def check_pnc_imported(binfo: BuildInfo) -> None:
    """
    Verifies that a build info was imported by PNC.

    :raises ConflictingBuild: if the build's extra data doesn't name
      PNC as its build system
    """

    extra = binfo.get("extra") or {}
    if extra.get(BUILD_SYSTEM) != PNC:
        raise ConflictingBuild(f"{binfo['id']} (build doesn't have"
                               f" {BUILD_SYSTEM} set to {PNC})")


class BrewSessionGateway():
    """
    Adapts a Brew hub to the operations needed to import PNC builds.

    Each public method logs in, performs its calls, and logs out again
    whether or not the calls succeeded. Hub and transport errors are
    re-raised as `BridgeError` subclasses.
    """

    def __init__(self, config: BridgeConfig,
                 session_factory: Optional[SessionFactory] = None):

        if session_factory is None:
            def session_factory():
                return ProfileClientSession(config.koji_profile,
                                            config.koji_url)

        self.config = config
        self.session_factory = session_factory
        self.brew_url = config.koji_weburl


    def find_build_by_nvr(self, nvr: NVR) -> Optional[BrewBuild]:
        """
        The PNC-imported build with the given NVR, or None if Brew has
        no such build.

        :raises ConflictingBuild: if a build with the NVR exists but
          was not imported by PNC
        """

        with self.session_factory() as session:
            try:
                binfo = session.getBuild(nvr.as_dict())
            except KOJI_ERRORS as kex:
                raise KojiCommunicationFailure(kex) from kex

        if not binfo:
            return None

        check_pnc_imported(binfo)
        return BrewBuild(binfo["id"], nvr)


    def find_build(self, build_id: int) -> Optional[BrewBuild]:
        """
        The PNC-imported build with the given ID, or None if Brew has
        no such build.

        :raises ConflictingBuild: if the build exists but was not
          imported by PNC
        """

        with self.session_factory() as session:
            try:
                binfo = session.getBuild(build_id)
            except KOJI_ERRORS as kex:
                raise KojiCommunicationFailure(kex) from kex

        if not binfo:
            return None

        check_pnc_imported(binfo)
        return BrewBuild(binfo["id"], NVR.from_buildinfo(binfo))


    def tag_build(self, tag: str, build: BrewBuild) -> None:
        """
        Adds the build's package to tag, and tags the build into the
        candidate variant of tag.

        :raises TagPermissionDenied: if hub policy forbids the current
          user from doing either

        :raises TaggingFailure: if the hub refuses for any other reason
        """

        logger.info("Applying tag %s on build %s.", tag, build.nvr)

        build_tag = tag + BUILD_TAG_SUFFIX
        user_name = None

        with self.session_factory() as session:
            try:
                user_name = session.getLoggedInUser()["name"]
                session.packageListAdd(tag, build.koji_name,
                                       owner=user_name)
                session.tagBuild(build_tag, build.nvr)

            except GenericError as kex:
                if "policy violation" in str(kex):
                    raise TagPermissionDenied(
                        "Ask RCM to add permissions for user"
                        f" '{user_name}' to add packages to tag '{tag}'"
                        f" and to tag builds into tag '{build_tag}'."
                        f" Cause: {kex}") from kex
                raise TaggingFailure(kex) from kex

            except RequestException as rex:
                raise KojiCommunicationFailure(rex) from rex


    def is_build_tagged(self, tag: str, build: BrewBuild) -> bool:
        """
        Whether the build is in the candidate variant of tag
        """

        build_tag = tag + BUILD_TAG_SUFFIX

        with self.session_factory() as session:
            try:
                tags = session.listTags(build=build.id)
            except KOJI_ERRORS as kex:
                raise KojiCommunicationFailure(
                    f"getting tag information from build {build.id},"
                    f" {kex}") from kex

        return any(tinfo["name"] == build_tag for tinfo in tags)


    def untag_build(self, tag: str, nvr: NVR) -> None:
        """
        Removes the build from the candidate variant of tag

        :raises TaggingFailure: if the hub refuses
        """

        logger.info("Removing tag %s from build %s.", tag, nvr.nvr)

        with self.session_factory() as session:
            try:
                session.untagBuild(tag + BUILD_TAG_SUFFIX, nvr.nvr)
            except GenericError as kex:
                raise TaggingFailure(kex) from kex
            except RequestException as rex:
                raise KojiCommunicationFailure(rex) from rex


    def import_build(
            self,
            nvr: NVR,
            build_record_id: str,
            metadata: Dict[str, Any],
            files: ImportFiles) -> BuildImportResult:
        """
        Imports a PNC build record into Brew, reporting rather than
        raising when individual files fail to upload.

        :param nvr: identity of the build being imported

        :param build_record_id: ID of the PNC build record

        :param metadata: content generator metadata for the import

        :param files: the files referenced by the metadata

        :raises KojiCommunicationFailure: if the import call itself
          failed
        """

        logger.info("Importing build %s.", nvr.nvr)

        ret = BuildImportResult(build_record_id)

        with self.session_factory() as session:
            try:
                result = import_to_koji(session, metadata, files)
            except KOJI_ERRORS as kex:
                raise KojiCommunicationFailure(kex) from kex

        if self._check_import_errors(result, files):
            ret.status = BuildImportStatus.FAILED

        binfo = result.build_info
        if binfo is None:
            ret.error_message = "Import to koji failed"
            ret.status = BuildImportStatus.ERROR
        else:
            ret.brew_build_id = binfo["id"]
            ret.brew_build_url = self.build_url(binfo["id"])

        logger.info("Build %s import status: %s.", nvr.nvr, ret.status.name)
        return ret


    def import_build_strict(
            self,
            nvr: NVR,
            metadata: Dict[str, Any],
            files: ImportFiles) -> BrewBuild:
        """
        Imports a build into Brew, requiring every file to be uploaded
        and a build to be produced.

        :raises ImportFailure: if the import call failed, any file
          failed to upload, or the hub produced no build
        """

        logger.info("Importing build %s.", nvr.nvr)

        with self.session_factory() as session:
            try:
                result = import_to_koji(session, metadata, files)
            except KOJI_ERRORS as kex:
                raise ImportFailure(kex) from kex

        if self._check_import_errors(result, files):
            raise ImportFailure("Failure while importing artifacts")

        binfo = result.build_info
        if binfo is None:
            raise ImportFailure("Import to koji failed for unknown reason."
                                " No build data.")

        return BrewBuild(binfo["id"], nvr)


    def _check_import_errors(self, result: KojiImportResult,
                             files: ImportFiles) -> bool:

        for filename, error in result.upload_errors.items():
            artifact_id = files.get_id(filename)
            logger.warning("Failed to import artifact %s (%s): %s",
                           artifact_id, filename, error, exc_info=error)

        return bool(result.upload_errors)


    def tags_exist(self, tag: str) -> bool:
        """
        Whether both tag and its candidate variant exist
        """

        with self.session_factory() as session:
            try:
                package_tag = session.getTag(tag)
                build_tag = session.getTag(tag + BUILD_TAG_SUFFIX)
            except KOJI_ERRORS as kex:
                raise KojiCommunicationFailure(kex) from kex

        return bool(package_tag) and bool(build_tag)


    def build_url(self, build_id: int) -> str:
        return f"{self.brew_url}{build_id}"


#
# The end.
