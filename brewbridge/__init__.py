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
Brew Bridge - Import PNC builds and their artifacts into Brew/Koji

:license: GPL v3
"""


from enum import Enum
from koji import ClientSession, GenericError, read_config
from koji_cli.lib import activate_session
from logging import getLogger
from requests import RequestException
from typing import Optional


__all__ = (
    "KOJI_ERRORS",

    "BadConfig",
    "BridgeError",
    "CommunicationFailure",
    "ConflictingBuild",
    "EmptyBuildLog",
    "ErrorKind",
    "ImportFailure",
    "KojiCommunicationFailure",
    "KojiLoginFailure",
    "ManagedClientSession",
    "PNCCommunicationFailure",
    "ProfileClientSession",
    "SemanticFailure",
    "TagPermissionDenied",
    "TaggingFailure",
)


logger = getLogger(__name__)


KOJI_ERRORS = (GenericError, RequestException)
"""
The exception types a koji `ClientSession` call may raise. Hub faults
arrive as `koji.GenericError` subclasses, and transport problems as
`requests.RequestException` subclasses.
"""


class ErrorKind(Enum):
    """
    Discriminates failures which are worth retrying from those which
    require an operator to step in
    """

    COMMUNICATION = "communication"
    SEMANTIC = "semantic"


class BridgeError(Exception):
    """
    Generalized base class for exceptions raised from brewbridge. As
    with the koji utilities this is modeled on, each subclass combines
    a fixed complaint string with some specific detail. The original
    remote exception, if any, is chained as the cause.
    """

    complaint: str = "Something bad happened"
    kind: ErrorKind = ErrorKind.SEMANTIC


    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.COMMUNICATION


    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


    def __str__(self):
        orig = super().__str__()
        return f"{self.complaint}: {orig}"


class CommunicationFailure(BridgeError):
    """
    A remote call failed in transport, or the remote side answered
    with an error. The caller may retry.
    """

    complaint = "Failure while communicating"
    kind = ErrorKind.COMMUNICATION


class KojiCommunicationFailure(CommunicationFailure):
    complaint = "Failure while communicating with Koji"


class KojiLoginFailure(CommunicationFailure):
    complaint = "Failure while logging in to Koji"


class PNCCommunicationFailure(CommunicationFailure):
    complaint = "Failure while communicating with PNC"


class SemanticFailure(BridgeError):
    """
    A well-formed remote answer violated an expectation. Retrying
    won't help, someone needs to act on the message.
    """

    complaint = "Unexpected remote state"
    kind = ErrorKind.SEMANTIC


class ConflictingBuild(SemanticFailure):
    """
    A build with the wanted identity exists in Koji, but it was not
    imported from PNC
    """

    complaint = "Found conflicting brew build"


class TagPermissionDenied(SemanticFailure):
    """
    Koji refused to tag due to a policy violation
    """

    complaint = "Missing permissions"


class TaggingFailure(SemanticFailure):
    complaint = "Failure while tagging in Koji"


class ImportFailure(SemanticFailure):
    complaint = "Failure while importing to Koji"


class EmptyBuildLog(SemanticFailure):
    complaint = "Build log is empty"


class BadConfig(SemanticFailure):
    complaint = "Invalid configuration"


class ManagedClientSession(ClientSession):
    """
    A `koji.ClientSession` that can be used via the ``with`` keyword
    to provide a managed session that will handle authenticated login
    and logout. The logout happens on every exit path, whether or not
    the body raised.
    """

    def __enter__(self):
        try:
            self.activate()
        except KojiLoginFailure:
            self.close_transport()
            raise
        return self


    def __exit__(self, exc_type, _exc_val, _exc_tb):
        self.deactivate()
        return False


    def activate(self) -> None:
        """
        Invokes `koji_cli.lib.activate_session` with this session's
        options, which will trigger the appropriate login method. A
        profile with ``noauth`` set is left unauthenticated.

        :raises KojiLoginFailure: if the hub could not be reached or
          refused the credentials
        """

        try:
            activate_session(self, self.opts)

        except KOJI_ERRORS as kex:
            raise KojiLoginFailure(kex) from kex

        except SystemExit as exc:
            # activate_session reports a failed login via koji_cli's
            # error(), which exits
            raise KojiLoginFailure(
                f"unable to authenticate to {self.baseurl}") from exc


    def deactivate(self) -> None:
        """
        Logs out and closes the underlying transport. A failure to log
        out is reported but does not replace the outcome of the work
        done within the session.
        """

        try:
            self.logout()
        except KOJI_ERRORS as kex:
            logger.warning("Failure while logging out from Koji: %s", kex)

        self.close_transport()


    def close_transport(self) -> None:
        if self.rsession:
            self.rsession.close()
            self.rsession = None


class ProfileClientSession(ManagedClientSession):
    """
    A `ManagedClientSession` which loads its settings from a koji
    client profile.
    """

    def __init__(self, profile: str = "koji", url: Optional[str] = None):
        """
        :param profile: name of the koji profile to load from local
          configuration locations

        :param url: hub URL to use in place of the profile's server
        """

        conf = read_config(profile)
        server = url or conf["server"]
        super().__init__(server, opts=conf)


#
# The end.
