"""
etl/extract.py – Extraction layer.

Fetches raw XML documents from the Central Bank of Russia API.

Calls we make:
  GET https://www.cbr.ru/scripts/XML_valFull.asp                      (directory)
  GET https://www.cbr.ru/scripts/XML_daily.asp?date_req=17/10/2026    (one day)

Example daily response:
  <?xml version="1.0" encoding="windows-1251"?>
  <ValCurs Date="17.10.2026" name="Foreign Currency Market">
    <Valute ID="R01235">
      <NumCode>840</NumCode>
      <CharCode>USD</CharCode>
      <Nominal>1</Nominal>
      <Name>Доллар США</Name>
      <Value>81,1234</Value>
      <VunitRate>81,1234</VunitRate>
    </Valute>
    ...
  </ValCurs>

The response body is returned as text; parsing happens in transform.py.
"""

import logging
import re

import requests

from config import API_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# The API declares its charset in the XML prolog, not always in the headers.
_XML_ENCODING = re.compile(rb"""<\?xml[^>]*encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


def fetch_text(url: str, timeout: int = API_TIMEOUT_SECONDS) -> str:
    """
    GET ``url`` and return the full response body as text.

    Raises
    ------
    requests.exceptions.HTTPError       – non-2xx status
    requests.exceptions.RequestException – network failure or timeout
    """
    logger.info("Calling CBR API | %s", url)

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as exc:
        logger.error("HTTP error from CBR API: %s", exc)
        raise
    except requests.exceptions.RequestException as exc:
        logger.error("Network error reaching CBR API: %s", exc)
        raise

    text = _decode(response)
    logger.debug("Fetched %d characters from %s", len(text), url)
    return text


def _decode(response: requests.Response) -> str:
    """Decode using the charset of the XML prolog, falling back to requests' guess."""
    match = _XML_ENCODING.search(response.content[:256])
    if match:
        encoding = match.group(1).decode("ascii")
        try:
            return response.content.decode(encoding, errors="replace")
        except LookupError:
            logger.warning("Unknown document encoding %r, falling back to %s", encoding, response.encoding)
    return response.text
