"""Kernel TCP/IP tunables derived from the firewall defaults."""

from fwgen.services.catalog import Flag
from fwgen.services.defaults import Defaults


def _bool(value: bool) -> str:
    return "1" if value else "0"


def kernel_tunables(defaults: Defaults) -> dict[str, str]:
    """Map the defaults' TCP/IP toggles to sysctl keys and values."""
    tunables = {
        "net.ipv4.tcp_syncookies": _bool(defaults.tcp_syncookies),
        "net.ipv4.tcp_ecn": _bool(defaults.tcp_ecn),
        "net.ipv4.tcp_congestion_control": "westwood" if defaults.tcp_westwood else "cubic",
        "net.ipv4.tcp_window_scaling": _bool(defaults.tcp_window_scaling),
        "net.ipv4.conf.all.accept_redirects": _bool(defaults.accept_redirects),
        "net.ipv4.conf.all.accept_source_route": _bool(defaults.accept_source_route),
    }

    if Flag.V6 in defaults.flags:
        tunables["net.ipv6.conf.all.accept_redirects"] = _bool(defaults.accept_redirects)
        tunables["net.ipv6.conf.all.accept_source_route"] = _bool(defaults.accept_source_route)

    return tunables


def render_sysctl(defaults: Defaults) -> list[str]:
    """``sysctl -w`` lines applying the tunables."""
    return [f"sysctl -w {key}={value}" for key, value in kernel_tunables(defaults).items()]
