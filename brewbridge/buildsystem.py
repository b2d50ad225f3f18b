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
Brew Bridge - Build System Gateway

Read-only adapter over PNC, used to discover which builds should be
imported and to gather their logs, sources, and artifacts.

:license: GPL v3
"""


from logging import getLogger
from typing import BinaryIO, Callable, Iterable, Optional, Set, Union

from . import EmptyBuildLog, PNCCommunicationFailure
from .common import BridgeConfig
from .pnc import (
    PNCClient, PNCClientError,
    RemoteResourceException, RemoteResourceNotFound, )
from .types import (
    BuildArtifacts, PNCArtifact, PNCArtifactInfo, PNCBuild,
    PNCBuildInfo, )


__all__ = (
    "BREW_TAG_PREFIX",
    "SUCCESS",

    "BuildSystemGateway",

    "to_pnc_artifact",
    "to_pnc_build",
)


logger = getLogger(__name__)


BREW_TAG_PREFIX = "BREW_TAG_PREFIX"
"""
product version attribute holding the brew tag for its milestones
"""

SUCCESS = "SUCCESS"


ArtifactQuery = Callable[[str], Iterable[PNCArtifactInfo]]


def to_pnc_artifact(artifact: PNCArtifactInfo) -> PNCArtifact:
    """
    Converts a PNC artifact DTO into a `PNCArtifact`. A single leading
    ``/`` is removed from the deploy path, and an unknown size is
    reported as 1.
    """

    deploy_path = artifact.get("deployPath") or ""
    if deploy_path.startswith("/"):
        deploy_path = deploy_path[1:]

    size = artifact.get("size")

    return PNCArtifact(
        id=artifact["id"],
        identifier=artifact["identifier"],
        deploy_path=deploy_path,
        md5=artifact.get("md5"),
        deploy_url=artifact.get("deployUrl"),
        size=1 if size is None else size,
        quality=artifact.get("artifactQuality"))


def to_pnc_build(build: PNCBuildInfo) -> PNCBuild:
    revision = build.get("buildConfigRevision") or {}
    return PNCBuild(
        id=str(build["id"]),
        status=build["status"],
        build_config_name=revision.get("name"),
        scm_revision=build.get("scmRevision"))


class BuildSystemGateway():
    """
    Adapts PNC to the handful of queries needed while importing
    builds into Brew.
    """

    def __init__(self, config: BridgeConfig,
                 client: Optional[PNCClient] = None):

        if client is None:
            client = PNCClient(config.pnc_url,
                               page_size=config.pnc_page_size,
                               timeout=config.pnc_timeout,
                               verify=config.pnc_verify)

        self.config = config
        self.client = client


    def tag_for_milestone(self, milestone_id: Union[int, str]) \
            -> Optional[str]:
        """
        The brew tag prefix configured on the product version that the
        milestone belongs to.

        :raises PNCCommunicationFailure: if the milestone could not be
          loaded
        """

        try:
            milestone = self.client.get_milestone(milestone_id)

        except RemoteResourceNotFound as nfe:
            raise PNCCommunicationFailure(
                "Can not read tag because PNC haven't managed to find"
                f" product milestone with id {milestone_id}"
                f" - response {nfe.status}") from nfe

        except RemoteResourceException as rre:
            raise PNCCommunicationFailure(
                "Can not read tag because PNC responded with an error"
                f" when getting product milestone {milestone_id}"
                f" - response {rre.status}") from rre

        except PNCClientError as pce:
            raise PNCCommunicationFailure(
                f"Unknown error - message = {pce}") from pce

        version = milestone.get("productVersion") or {}
        attributes = version.get("attributes") or {}
        return attributes.get(BREW_TAG_PREFIX)


    def successful_builds_for_milestone(
            self,
            milestone_id: Union[int, str]) -> Set[PNCBuild]:
        """
        The successful builds of a milestone. Entries repeated by the
        paging collapse into one.

        :raises PNCCommunicationFailure: if any page could not be
          loaded
        """

        builds: Set[PNCBuild] = set()

        try:
            found = self.client.get_milestone_builds(
                milestone_id, query=f"status=={SUCCESS}")
            for build in found:
                if build.get("status") == SUCCESS:
                    builds.add(to_pnc_build(build))

        except RemoteResourceException as rre:
            raise PNCCommunicationFailure(
                "Can not read builds for product milestone"
                f" {milestone_id} - response {rre.status}") from rre

        except PNCClientError as pce:
            raise PNCCommunicationFailure(
                "Can not read builds for product milestone"
                f" {milestone_id}: {pce}") from pce

        return builds


    def build_log(self, build_id: Union[int, str]) -> str:
        """
        The complete build log of a build. A log with no content is an
        empty string.

        :raises EmptyBuildLog: if PNC has no log for the build

        :raises PNCCommunicationFailure: if PNC could not be queried
        """

        try:
            log = self.client.get_build_logs(build_id)

        except RemoteResourceException as rre:
            raise PNCCommunicationFailure(
                f"Can not read build log of build {build_id} because PNC"
                f" responded with an error - response {rre.status}") \
                from rre

        except PNCClientError as pce:
            raise PNCCommunicationFailure(
                f"Can not read build log of build {build_id}: {pce}") \
                from pce

        if log is None:
            raise EmptyBuildLog(f"Build log for Build {build_id} is empty"
                                " - response 404")

        return log


    def sources_archive(self, build_id: Union[int, str]) -> BinaryIO:
        """
        A stream of the internal SCM archive of a build. The caller
        takes ownership of the stream and must close it.

        :raises PNCCommunicationFailure: if PNC responds with an error
          status or could not be queried
        """

        try:
            response = self.client.get_internal_scm_archive_link(build_id)
        except PNCClientError as pce:
            raise PNCCommunicationFailure(
                f"Can not read sources of build {build_id}: {pce}") from pce

        status = response.status_code
        if status >= 400:
            logger.warning("Got status %s from sources endpoint."
                           " Message: %s", status, response.text)
            response.close()
            raise PNCCommunicationFailure(
                f"Can not read sources of build {build_id},"
                f" received status {status}")

        raw = response.raw
        raw.decode_content = True
        return raw


    def build_artifacts(self, build_id: Union[int, str]) -> BuildArtifacts:
        """
        The artifacts produced by a build, and the artifacts it
        depended upon
        """

        built = self._artifacts(build_id, self.client.get_built_artifacts)
        deps = self._artifacts(build_id,
                               self.client.get_dependency_artifacts)

        return BuildArtifacts(built, deps)


    def _artifacts(self, build_id: Union[int, str],
                   query: ArtifactQuery) -> Set[PNCArtifact]:

        artifacts: Set[PNCArtifact] = set()

        try:
            for artifact in query(str(build_id)):
                artifacts.add(to_pnc_artifact(artifact))

        except RemoteResourceException as rre:
            raise PNCCommunicationFailure(
                f"Can't get info for build with id {build_id}"
                f" - response {rre.status}") from rre

        except PNCClientError as pce:
            raise PNCCommunicationFailure(
                f"Can't get info for build with id {build_id}: {pce}") \
                from pce

        return artifacts


#
# The end.
