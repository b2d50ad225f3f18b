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


from configparser import ConfigParser
from os.path import abspath, dirname, join
from unittest import TestCase
from unittest.mock import MagicMock, patch

from brewbridge import BadConfig
from brewbridge.common import (
    BridgeConfig,
    find_config_dirs,
    find_config_files,
    get_config_section,
    load_config,
    load_full_config,
)


DATA = join(dirname(abspath(__file__)), "data")


def data_dirs():
    return (join(DATA, "system"), join(DATA, "user"))


def faux_appdir():
    fakes = data_dirs()

    obj = MagicMock()

    site_config_dir = obj.site_config_dir
    site_config_dir.side_effect = [fakes[0]]

    user_config_dir = obj.user_config_dir
    user_config_dir.side_effect = [fakes[1]]

    return obj


def faux_read_config(weburl="https://brew.example.com/brew/"):
    return MagicMock(return_value={"server": "https://brew.example.com/hub",
                                   "weburl": weburl})


class TestConfig(TestCase):

    def test_find_dirs(self):
        meh = faux_appdir()
        with patch('brewbridge.common.appdirs', new=meh):
            dirs = find_config_dirs()

        self.assertEqual(len(dirs), 2)
        self.assertEqual(dirs, data_dirs())
        meh.site_config_dir.assert_called_once_with("brewbridge")
        meh.user_config_dir.assert_called_once_with("brewbridge")


    def test_find_files(self):
        with patch('brewbridge.common.appdirs', new=faux_appdir()) as meh:
            found = find_config_files()

        self.assertEqual(len(found), 3)
        self.assertEqual(meh.site_config_dir.call_count, 1)
        self.assertEqual(meh.user_config_dir.call_count, 1)

        system, user = data_dirs()
        self.assertEqual(found, [join(system, "brewbridge.conf"),
                                 join(user, "a.conf"),
                                 join(user, "b.conf")])


    def test_find_files_missing_dir(self):
        found = find_config_files([join(DATA, "nope"), join(DATA, "user")])
        self.assertEqual(len(found), 2)


    def test_load_full_config(self):
        with patch('brewbridge.common.appdirs', new=faux_appdir()):
            conf = load_full_config()

        self.assertTrue(isinstance(conf, ConfigParser))
        self.assertTrue(conf.has_section("brewbridge"))
        self.assertTrue(conf.has_section("brewbridge:stage"))
        self.assertTrue(conf.has_section("brewbridge:broken"))
        self.assertEqual(conf.get("brewbridge", "pnc_timeout"), "30.5")


    def test_get_config_section(self):
        conf = load_full_config(find_config_files(data_dirs()))

        plain = get_config_section(conf)
        self.assertEqual(plain["koji_profile"], "brew")
        self.assertEqual(plain["pnc_verify"], "no")
        self.assertNotIn("koji_weburl", plain)

        stage = get_config_section(conf, profile="stage")
        self.assertEqual(stage["koji_profile"], "brew-stage")
        self.assertEqual(stage["pnc_timeout"], "30.5")
        self.assertEqual(stage["pnc_verify"],
                         "/etc/pki/tls/certs/stage-ca.pem")

        missing = get_config_section(conf, profile="missing")
        self.assertEqual(missing, plain)

        self.assertEqual(get_config_section(conf, "other"), {})


class TestLoadConfig(TestCase):

    def setUp(self):
        self.files = find_config_files(data_dirs())


    def test_load_default(self):
        read_config = faux_read_config()
        with patch('brewbridge.common.read_config', new=read_config):
            config = load_config(config_files=self.files)

        read_config.assert_called_once_with("brew")

        self.assertEqual(config, BridgeConfig(
            koji_profile="brew",
            koji_url=None,
            koji_weburl="https://brew.example.com/brew/buildinfo?buildID=",
            pnc_url="https://pnc.example.com/pnc-rest/v2",
            pnc_page_size=100,
            pnc_timeout=30.5,
            pnc_verify=False))


    def test_load_profile(self):
        read_config = faux_read_config()
        with patch('brewbridge.common.read_config', new=read_config):
            config = load_config("stage", self.files)

        self.assertFalse(read_config.called)

        self.assertEqual(config.koji_profile, "brew-stage")
        self.assertEqual(
            config.koji_weburl,
            "https://brew.stage.example.com/brew/buildinfo?buildID=")
        self.assertEqual(config.pnc_url,
                         "https://pnc.stage.example.com/pnc-rest/v2")
        self.assertEqual(config.pnc_verify,
                         "/etc/pki/tls/certs/stage-ca.pem")
        self.assertEqual(config.pnc_page_size, 100)


    def test_load_overrides(self):
        config = load_config(config_files=self.files,
                             koji_weburl="https://b/buildinfo?buildID=",
                             koji_url="https://b/hub",
                             pnc_verify="yes",
                             pnc_page_size=None)

        self.assertEqual(config.koji_url, "https://b/hub")
        self.assertEqual(config.koji_weburl, "https://b/buildinfo?buildID=")
        self.assertIs(config.pnc_verify, True)
        self.assertEqual(config.pnc_page_size, 100)


    def test_load_defaults_only(self):
        config = load_config(config_files=[],
                             pnc_url="https://pnc/",
                             koji_weburl="https://b/buildinfo?buildID=")

        self.assertEqual(config.koji_profile, "koji")
        self.assertEqual(config.pnc_url, "https://pnc")
        self.assertEqual(config.pnc_page_size, 200)
        self.assertEqual(config.pnc_timeout, 60.0)
        self.assertIs(config.pnc_verify, True)


    def test_missing_pnc_url(self):
        with self.assertRaises(BadConfig) as cm:
            load_config(config_files=[])
        self.assertIn("pnc_url", str(cm.exception))


    def test_missing_weburl(self):
        read_config = faux_read_config(weburl=None)
        with patch('brewbridge.common.read_config', new=read_config):
            with self.assertRaises(BadConfig) as cm:
                load_config(config_files=self.files)

        self.assertIn("'brew'", str(cm.exception))


    def test_bad_number(self):
        with patch('brewbridge.common.read_config', new=faux_read_config()):
            self.assertRaises(BadConfig, load_config, "broken", self.files)


#
# The end.
