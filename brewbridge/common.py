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
Brew Bridge - Configuration

Locating, loading, and interpreting the configuration shared by the
gateways.

:license: GPL v3
"""


import appdirs

from configparser import ConfigParser
from glob import glob
from koji import read_config
from os.path import isdir, join
from typing import (
    Any, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union, )

from . import BadConfig


__all__ = (
    "CONFIG_SECTION",

    "BridgeConfig",

    "find_config_dirs",
    "find_config_files",
    "get_config_section",
    "load_config",
    "load_full_config",
)


CONFIG_SECTION = "brewbridge"


class BridgeConfig(NamedTuple):
    """
    Settings for both gateways, read once and never changed
    afterwards
    """

    koji_profile: str
    koji_url: Optional[str]
    koji_weburl: str
    pnc_url: str
    pnc_page_size: int = 200
    pnc_timeout: float = 60.0
    pnc_verify: Union[bool, str] = True


def find_config_dirs() -> Tuple[str, str]:
    """
    The site and user configuration dirs for brewbridge, as a
    tuple, as determined by ``appdirs``
    """

    site_conf_dir = appdirs.site_config_dir(CONFIG_SECTION)
    user_conf_dir = appdirs.user_config_dir(CONFIG_SECTION)

    return (site_conf_dir, user_conf_dir)


def find_config_files(
        dirs: Optional[Iterable[str]] = None) -> List[str]:
    """
    The ordered list of configuration files to be loaded.

    If `dirs` is specified, it must be a sequence of directory names,
    from which conf files will be loaded in order. If unspecified,
    defaults to the result of `find_config_dirs`

    Configuration files must have the extension ``.conf`` to be
    considered. The files will be listed in directory order, and then
    in alphabetical order from within each directory.

    :param dirs: list of directories to look for config files within
    """

    if dirs is None:
        dirs = find_config_dirs()

    found: List[str] = []

    for confdir in dirs:
        if isdir(confdir):
            wanted = join(confdir, "*.conf")
            found.extend(sorted(glob(wanted)))

    return found


def load_full_config(
        config_files: Optional[Iterable[str]] = None) -> ConfigParser:
    """
    Configuration object representing the full merged view of config
    files.

    :param config_files: configuration files to be loaded, in order.
      If not specified, the results of `find_config_files` will be
      used.
    """

    if config_files is None:
        config_files = find_config_files()

    conf = ConfigParser()
    conf.read(config_files)

    return conf


def get_config_section(
        conf: ConfigParser,
        section: str = CONFIG_SECTION,
        profile: Optional[str] = None) -> Dict[str, Any]:
    """
    Given a loaded configuration, return the named section merged
    with its profile-specific variant, if any. Profile sections are
    denoted by a suffix on the section name, eg.

    ::

      [brewbridge]
      pnc_url = https://pnc.example.com/pnc-rest/v2

      [brewbridge:stage]
      pnc_url = https://pnc.stage.example.com/pnc-rest/v2

    :param conf: loaded configuration data

    :param section: section name

    :param profile: profile name, optional
    """

    settings: Dict[str, Any] = {}

    if conf.has_section(section):
        settings.update(conf.items(section))

    if profile is not None:
        profile = ":".join((section, profile))
        if conf.has_section(profile):
            settings.update(conf.items(profile))

    return settings


def _as_verify(value: Union[bool, str]) -> Union[bool, str]:
    if isinstance(value, bool):
        return value

    lowered = value.strip().lower()
    if lowered in ("1", "yes", "true", "on"):
        return True
    elif lowered in ("0", "no", "false", "off"):
        return False
    else:
        # anything else is the path to a CA bundle
        return value


def _koji_weburl(koji_profile: str) -> str:
    kconf = read_config(koji_profile)
    weburl = kconf.get("weburl")
    if not weburl:
        raise BadConfig(f"koji profile {koji_profile!r} has no weburl,"
                        " koji_weburl must be set")
    return weburl.rstrip("/") + "/buildinfo?buildID="


def load_config(
        profile: Optional[str] = None,
        config_files: Optional[Iterable[str]] = None,
        **overrides: Any) -> BridgeConfig:
    """
    Builds a `BridgeConfig` from the ``[brewbridge]`` section of the
    configuration files, optionally overlaid with a
    ``[brewbridge:PROFILE]`` section, and finally with any non-None
    keyword overrides.

    When ``koji_weburl`` is not given, it is derived from the
    ``weburl`` setting of the koji client profile.

    :param profile: brewbridge profile name

    :param config_files: configuration files to load instead of those
      found via `find_config_files`

    :raises BadConfig: if ``pnc_url`` is missing, a numeric setting
      cannot be parsed, or no web URL is available for Koji
    """

    conf = load_full_config(config_files)
    settings = get_config_section(conf, CONFIG_SECTION, profile)
    settings.update((k, v) for k, v in overrides.items() if v is not None)

    pnc_url = settings.get("pnc_url")
    if not pnc_url:
        raise BadConfig("pnc_url is required")

    koji_profile = settings.get("koji_profile") or "koji"

    koji_weburl = settings.get("koji_weburl")
    if not koji_weburl:
        koji_weburl = _koji_weburl(koji_profile)

    try:
        page_size = int(settings.get("pnc_page_size", 200))
        timeout = float(settings.get("pnc_timeout", 60.0))
    except ValueError as ve:
        raise BadConfig(ve) from ve

    return BridgeConfig(
        koji_profile=koji_profile,
        koji_url=settings.get("koji_url") or None,
        koji_weburl=koji_weburl,
        pnc_url=pnc_url.rstrip("/"),
        pnc_page_size=page_size,
        pnc_timeout=timeout,
        pnc_verify=_as_verify(settings.get("pnc_verify", True)))


#
# The end.
