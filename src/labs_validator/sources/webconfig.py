import json
import logging
from xml.etree import ElementTree as ET

from ..errors import ProtocolError


logger = logging.getLogger(__name__)


def build_webconfig_payload(raw_data):
    """
    Pull httpCookies/@requireSSL out of an ASP.NET web.config and return
    {"requiressl": value} as JSON bytes. A missing element gives "".
    """
    try:
        root = ET.fromstring(raw_data)
    except ET.ParseError as exc:
        raise ProtocolError("Unmarshaling XML - '{}'".format(exc)) from exc

    if _local_name(root.tag) != "configuration":
        raise ProtocolError(
            "Unmarshaling XML - 'expected element <configuration>, got <{}>'".format(root.tag)
        )

    require_ssl = ""
    cookies = _child(_child(root, "system.web"), "httpCookies")
    if cookies is not None:
        require_ssl = cookies.get("requireSSL", "")

    if require_ssl == "":
        logger.debug("No value found for RequireSSL")
    else:
        logger.debug("Found a value for the RequireSSL string: %s", require_ssl)

    return json.dumps({"requiressl": require_ssl}, separators=(",", ":")).encode("utf-8")


def _child(element, tag):
    if element is None:
        return None
    for child in element:
        if _local_name(child.tag) == tag:
            return child
    return None


def _local_name(tag):
    # "{namespace}name" -> "name"
    return tag.rsplit("}", 1)[-1]
