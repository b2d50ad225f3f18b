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


import koji

from requests import ConnectionError
from unittest import TestCase
from unittest.mock import patch

from brewbridge import (
    BridgeError, CommunicationFailure, ConflictingBuild, ErrorKind,
    KojiCommunicationFailure, KojiLoginFailure, ManagedClientSession,
    PNCCommunicationFailure, ProfileClientSession, SemanticFailure,
    TagPermissionDenied, )


class TestErrors(TestCase):

    def test_str(self):
        err = KojiCommunicationFailure("hub is down")
        self.assertEqual(str(err),
                         "Failure while communicating with Koji: hub is down")

        err = ConflictingBuild("1012")
        self.assertEqual(str(err), "Found conflicting brew build: 1012")


    def test_kinds(self):
        for cls in (KojiCommunicationFailure, KojiLoginFailure,
                    PNCCommunicationFailure):
            err = cls("x")
            self.assertTrue(isinstance(err, CommunicationFailure))
            self.assertIs(err.kind, ErrorKind.COMMUNICATION)
            self.assertTrue(err.retryable)

        for cls in (ConflictingBuild, TagPermissionDenied):
            err = cls("x")
            self.assertTrue(isinstance(err, SemanticFailure))
            self.assertIs(err.kind, ErrorKind.SEMANTIC)
            self.assertFalse(err.retryable)


    def test_cause(self):
        orig = koji.GenericError("ohnoes")

        try:
            try:
                raise orig
            except koji.GenericError as kex:
                raise KojiCommunicationFailure(kex) from kex
        except BridgeError as bex:
            err = bex

        self.assertIs(err.cause, orig)
        self.assertIn("ohnoes", str(err))

        self.assertIsNone(ConflictingBuild("x").cause)


def koji_opts(**opts):
    """
    The subset of a koji profile which activate_session consults
    """

    base = {
        "authtype": None,
        "noauth": False,
        "cert": None,
        "serverca": None,
        "user": None,
        "password": None,
        "principal": None,
        "keytab": None,
        "runas": None,
        "debug": False,
    }
    base.update(opts)
    return base


class TestManagedSession(TestCase):

    def setUp(self):
        self.activate = patch('brewbridge.activate_session').start()
        self.logout = patch('koji.ClientSession.logout').start()


    def tearDown(self):
        patch.stopall()


    def session(self, **opts):
        return ManagedClientSession("https://brew.example.com/hub",
                                    opts=koji_opts(**opts))


    def test_activate(self):
        with self.session(principal="me@EXAMPLE.COM") as sess:
            self.assertTrue(isinstance(sess, koji.ClientSession))
            self.assertFalse(self.logout.called)

        self.activate.assert_called_once_with(sess, sess.opts)
        self.assertEqual(sess.opts["principal"], "me@EXAMPLE.COM")
        self.logout.assert_called_once_with()
        self.assertIsNone(sess.rsession)


    def test_login_refused(self):
        self.activate.side_effect = SystemExit(1)

        sess = self.session()
        with self.assertRaises(KojiLoginFailure) as cm:
            with sess:
                self.fail("entered an unauthenticated session")

        self.assertIn("brew.example.com", str(cm.exception))
        self.assertIsInstance(cm.exception.cause, SystemExit)
        self.assertFalse(self.logout.called)
        self.assertIsNone(sess.rsession)


    def test_login_error(self):
        self.activate.side_effect = koji.AuthError("no ticket")

        with self.assertRaises(KojiLoginFailure) as cm:
            with self.session():
                pass

        self.assertIsInstance(cm.exception.cause, koji.AuthError)
        self.assertIn("no ticket", str(cm.exception))


    def test_login_transport_error(self):
        self.activate.side_effect = ConnectionError("refused")

        with self.assertRaises(KojiLoginFailure) as cm:
            with self.session():
                pass

        self.assertTrue(cm.exception.retryable)


    def test_logout_on_error(self):
        with self.assertRaises(KeyError):
            with self.session():
                raise KeyError("boom")

        self.logout.assert_called_once_with()


    def test_logout_error(self):
        self.logout.side_effect = ConnectionError("gone")

        with self.assertLogs("brewbridge", "WARNING") as logs:
            with self.session() as sess:
                pass

        self.assertIn("gone", logs.output[0])
        self.assertIsNone(sess.rsession)


    def test_profile(self):
        conf = koji_opts(server="https://profile.example.com/hub",
                         principal="pnc@EXAMPLE.COM")

        with patch('brewbridge.read_config', return_value=conf) as rc:
            sess = ProfileClientSession("brew")

        rc.assert_called_once_with("brew")
        self.assertEqual(sess.baseurl, "https://profile.example.com/hub")

        with patch('brewbridge.read_config', return_value=conf):
            sess = ProfileClientSession("brew", "https://other/hub")

        self.assertEqual(sess.baseurl, "https://other/hub")

        with sess:
            pass

        self.activate.assert_called_once_with(sess, sess.opts)
        self.assertEqual(sess.opts["principal"], "pnc@EXAMPLE.COM")


class TestNoAuthSession(TestCase):

    def setUp(self):
        self.ssl_login = patch('koji.ClientSession.ssl_login').start()
        self.login = patch('koji.ClientSession.login').start()
        self.gssapi_login = patch('koji.ClientSession.gssapi_login').start()
        self.logout = patch('koji.ClientSession.logout').start()
        self.ensure = patch('koji_cli.lib.ensure_connection').start()


    def tearDown(self):
        patch.stopall()


    def test_noauth(self):
        for opts in (koji_opts(noauth=True),
                     koji_opts(authtype="noauth")):

            sess = ManagedClientSession("https://brew.example.com/hub",
                                        opts=opts)
            with sess:
                pass

            self.assertIsNone(sess.rsession)

        self.assertFalse(self.ssl_login.called)
        self.assertFalse(self.login.called)
        self.assertFalse(self.gssapi_login.called)
        self.assertEqual(self.logout.call_count, 2)


#
# The end.
