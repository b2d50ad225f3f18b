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
Brew Bridge - Content Generator Imports

Uploading the files of a build to a koji hub and importing them as a
content generator build.

:license: GPL v3
"""


from contextlib import contextmanager
from io import BytesIO
from koji import ClientSession
from koji_cli.lib import unique_path
from logging import getLogger
from os.path import basename, dirname, join
from requests import Session
from shutil import copyfileobj
from tempfile import NamedTemporaryFile
from typing import (
    Any, BinaryIO, Callable, Dict, Iterator, Optional, Tuple, Union, )

from . import KOJI_ERRORS, BridgeError
from .types import KojiImportResult


__all__ = (
    "UPLOAD_PREFIX",

    "ImportFiles",

    "import_to_koji",
)


logger = getLogger(__name__)


UPLOAD_PREFIX = "brewbridge"


Opener = Callable[[], BinaryIO]


class ImportFiles():
    """
    The files to be uploaded for an import, keyed by the relative path
    they will have in the import directory. Each file is associated
    with the PNC artifact it came from, if any, and is only fetched
    once it is opened.

    Use via ``with``, or call `close`, to release the HTTP session
    created for URL downloads.
    """

    def __init__(self, http: Optional[Session] = None,
                 timeout: Optional[float] = 60.0):

        self.http = http
        self.timeout = timeout
        self._owns_http = http is None
        self._files: Dict[str, Tuple[Optional[str], Opener]] = {}


    def add(self, filename: str, opener: Opener,
            artifact_id: Optional[str] = None) -> None:

        if filename in self._files:
            raise ValueError(f"duplicate import file {filename!r}")
        self._files[filename] = (artifact_id, opener)


    def add_url(self, filename: str, url: str,
                artifact_id: Optional[str] = None) -> None:
        """
        A file to be downloaded from the given URL, typically an
        artifact's deploy URL
        """

        self.add(filename, lambda: self._download(url), artifact_id)


    def add_content(self, filename: str, content: Union[bytes, str],
                    artifact_id: Optional[str] = None) -> None:
        """
        A file whose content is already in memory, eg. a build log
        """

        if isinstance(content, str):
            content = content.encode("utf-8")
        data = content
        self.add(filename, lambda: BytesIO(data), artifact_id)


    def add_stream(self, filename: str, opener: Opener,
                   artifact_id: Optional[str] = None) -> None:
        """
        A file read from the stream returned by calling opener, eg. the
        `BuildSystemGateway.sources_archive` of a build
        """

        self.add(filename, opener, artifact_id)


    def get_id(self, filename: str) -> Optional[str]:
        found = self._files.get(filename)
        return found[0] if found else None


    @contextmanager
    def open(self, filename: str) -> Iterator[BinaryIO]:
        _artifact_id, opener = self._files[filename]
        stream = opener()
        try:
            yield stream
        finally:
            stream.close()


    def _download(self, url: str) -> BinaryIO:
        http = self.http
        if http is None:
            http = self.http = Session()

        response = http.get(url, stream=True, timeout=self.timeout)
        response.raise_for_status()

        raw = response.raw
        raw.decode_content = True
        return raw


    def __iter__(self) -> Iterator[str]:
        return iter(list(self._files))


    def __len__(self) -> int:
        return len(self._files)


    def __contains__(self, filename: object) -> bool:
        return filename in self._files


    def close(self) -> None:
        """
        Closes the HTTP session created for downloads. A session that
        was passed in belongs to the caller and is left open.
        """

        if self._owns_http and self.http is not None:
            self.http.close()
            self.http = None


    def __enter__(self):
        return self


    def __exit__(self, exc_type, _exc_val, _exc_tb):
        self.close()
        return False


def _upload(session: ClientSession, files: ImportFiles,
            filename: str, upload_dir: str) -> None:

    serverdir = join(upload_dir, dirname(filename)).rstrip("/")

    with files.open(filename) as stream, NamedTemporaryFile() as tmp:
        copyfileobj(stream, tmp)
        tmp.flush()
        session.uploadWrapper(tmp.name, serverdir, name=basename(filename))


def import_to_koji(
        session: ClientSession,
        metadata: Dict[str, Any],
        files: ImportFiles,
        upload_dir: Optional[str] = None) -> KojiImportResult:
    """
    Uploads each of the files and then imports them along with the
    metadata as a content generator build.

    A file which fails to upload doesn't stop the remaining uploads,
    but the import itself is skipped if any upload failed. In that
    case the resulting build info is None and the upload errors are
    reported.

    :param session: an active, logged-in koji session

    :param metadata: content generator metadata describing the build
      and its outputs. Output filenames and relpaths must agree with
      the filenames in files.

    :param files: the files referenced by the metadata

    :param upload_dir: directory on the hub to upload into. Default, a
      new unique directory

    :raises koji.GenericError: if the hub rejects the import

    :raises requests.RequestException: if the hub could not be
      reached during the import call
    """

    if upload_dir is None:
        upload_dir = unique_path(UPLOAD_PREFIX)

    errors: Dict[str, BaseException] = {}

    for filename in files:
        logger.debug("Uploading %s to %s", filename, upload_dir)
        try:
            _upload(session, files, filename, upload_dir)
        except KOJI_ERRORS + (OSError, BridgeError) as ex:
            errors[filename] = ex

    if errors:
        return KojiImportResult(None, errors)

    binfo = session.CGImport(metadata, upload_dir)
    return KojiImportResult(binfo, {})


#
# The end.
