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
Brew Bridge - PNC REST client

A small client for the parts of the PNC v2 REST API which the build
system gateway relies on.

:license: GPL v3
"""


from logging import getLogger
from requests import RequestException, Response, Session
from typing import Any, Dict, Iterator, Optional, Union

from .types import PNCArtifactInfo, PNCBuildInfo, PNCMilestoneInfo


__all__ = (
    "PNCClient",
    "PNCClientError",
    "RemoteResourceException",
    "RemoteResourceNotFound",
)


logger = getLogger(__name__)


class PNCClientError(Exception):
    """
    The PNC service could not be reached or did not produce a usable
    response
    """


class RemoteResourceException(PNCClientError):
    """
    PNC answered with an HTTP error status
    """

    def __init__(self, status: int, url: str, message: str = ""):
        self.status = status
        self.url = url
        super().__init__(f"{url} - response {status} {message}".rstrip())


class RemoteResourceNotFound(RemoteResourceException):
    pass


class PNCClient():
    """
    Read-only access to PNC over HTTP.

    Listing endpoints are paged, and are exposed here as generators
    which fetch each page only as it is reached. Errors therefore
    surface while iterating, not when the method is called.
    """

    def __init__(self, url: str,
                 page_size: int = 200,
                 timeout: Optional[float] = 60.0,
                 verify: Union[bool, str] = True,
                 http: Optional[Session] = None):

        self.url = url.rstrip("/")
        self.page_size = page_size
        self.timeout = timeout

        if http is None:
            http = Session()
            http.headers["Accept"] = "application/json"
            http.verify = verify
        self.http = http


    def _request(self, path: str,
                 params: Optional[Dict[str, Any]] = None,
                 stream: bool = False) -> Response:

        url = f"{self.url}{path}"
        logger.debug("GET %s %r", url, params)

        try:
            return self.http.get(url, params=params, stream=stream,
                                 timeout=self.timeout)
        except RequestException as rex:
            raise PNCClientError(f"{url}: {rex}") from rex


    def _get(self, path: str,
             params: Optional[Dict[str, Any]] = None,
             stream: bool = False) -> Response:

        response = self._request(path, params, stream)
        status = response.status_code

        if status == 404:
            response.close()
            raise RemoteResourceNotFound(status, response.url)

        elif status >= 400:
            message = response.text
            response.close()
            raise RemoteResourceException(status, response.url, message)

        return response


    def _get_json(self, path: str,
                  params: Optional[Dict[str, Any]] = None) -> Any:

        response = self._get(path, params)
        try:
            return response.json()
        except ValueError as ve:
            raise PNCClientError(f"{response.url}: invalid JSON,"
                                 f" {ve}") from ve


    def iter_pages(self, path: str,
                   query: Optional[str] = None) -> Iterator[Any]:
        """
        Yields every item of a paged collection endpoint, in the order
        PNC presents them.

        :param path: the endpoint path, relative to the base URL

        :param query: an RSQL filter expression, eg.
          ``"status==SUCCESS"``
        """

        params: Dict[str, Any] = {"pageSize": self.page_size}
        if query:
            params["q"] = query

        index = 0
        while True:
            params["pageIndex"] = index
            page = self._get_json(path, params)

            yield from page.get("content") or ()

            index += 1
            if index >= page.get("totalPages", 0):
                break


    def get_milestone(self, milestone_id: Union[int, str]) \
            -> PNCMilestoneInfo:
        return self._get_json(f"/product-milestones/{milestone_id}")


    def get_milestone_builds(
            self,
            milestone_id: Union[int, str],
            query: Optional[str] = None) -> Iterator[PNCBuildInfo]:

        path = f"/product-milestones/{milestone_id}/builds"
        return self.iter_pages(path, query)


    def get_build_logs(self, build_id: Union[int, str]) -> Optional[str]:
        """
        The full build log of a build, or None if PNC has no log
        for it
        """

        try:
            response = self._get(f"/builds/{build_id}/logs/build")
        except RemoteResourceNotFound:
            return None

        with response:
            return response.text


    def get_internal_scm_archive_link(
            self,
            build_id: Union[int, str]) -> Response:
        """
        The streaming response to a request for the internal SCM
        archive of a build. Redirects are followed, and the status is
        not checked.
        """

        return self._request(f"/builds/{build_id}/internal-scm-archive",
                             stream=True)


    def get_built_artifacts(
            self,
            build_id: Union[int, str]) -> Iterator[PNCArtifactInfo]:
        return self.iter_pages(f"/builds/{build_id}/artifacts/built")


    def get_dependency_artifacts(
            self,
            build_id: Union[int, str]) -> Iterator[PNCArtifactInfo]:
        return self.iter_pages(f"/builds/{build_id}/artifacts/dependencies")


#
# The end.
