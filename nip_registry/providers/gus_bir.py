"""
Dostawca GUS BIR 1.1 (REGON) - oficjalny rejestr podmiotów gospodarczych.

Wymaga klucza użytkownika GUS. Na jedno rozwiązanie NIP przypadają:
- Zaloguj (tylko gdy brak ważnej sesji),
- DaneSzukajPodmioty (wyszukiwanie po NIP),
- DanePobierzPelnyRaport (pełny raport - numer KRS).

Dokumentacja: https://api.stat.gov.pl/Home/RegonApi
"""

import asyncio
import logging
import re
import time
import xml.etree.ElementTree as ET
from typing import Callable, Optional

import httpx

from ..config import NIPRegistrySettings, get_settings
from ..exceptions import GUSProviderError
from ..models import Address, LookupResult, ResultSource, VatStatus
from .base import NIPProvider

logger = logging.getLogger(__name__)

# Publiczny klucz środowiska testowego GUS
GUS_TEST_API_KEY = "abcde12345abcde12345"

_ACTION_BASE = "http://CIS/BIR/PUBL/2014/07/IUslugaBIRzewnPubl"

# BIR ErrorCode 4 = brak danych dla zadanych parametrów
_NOT_FOUND_ERROR_CODE = "4"

# Raport pełny wg typu podmiotu (P - osoba prawna, F - osoba fizyczna)
REPORT_NAMES = {
    "P": "BIR11OsPrawna",
    "F": "BIR11OsFizycznaDaneOgolne",
}

# StatusNip z GUS -> status VAT
_VAT_STATUS_MAP = {
    "Aktywny": VatStatus.ACTIVE,
    "A": VatStatus.ACTIVE,
    "Zwolniony": VatStatus.EXEMPT,
    "Z": VatStatus.EXEMPT,
}


def map_vat_status(status: Optional[str]) -> Optional[VatStatus]:
    """Mapuje StatusNip z GUS; nieznany niepusty status = inactive."""
    if not status or not status.strip():
        return None
    return _VAT_STATUS_MAP.get(status.strip(), VatStatus.INACTIVE)


def format_street(
    street: Optional[str],
    building_number: Optional[str],
    apartment_number: Optional[str],
) -> Optional[str]:
    """Buduje linię adresu: "ulica nr/lokal" (bez numeru budynku: "ulica /lokal")."""
    line = " ".join(part for part in (street, building_number) if part)
    if apartment_number:
        line += f"/{apartment_number}" if building_number else f" /{apartment_number}"
    return line.strip() or None


class GUSBirProvider(NIPProvider):
    """
    Klient GUS BIR 1.1 jako dostawca w łańcuchu wyszukiwania.

    Sesja (sid) jest współdzielona między wywołaniami i odświeżana
    po upływie gus_session_ttl_minutes. Odświeżanie jest chronione lockiem,
    więc równoległe wyszukiwania logują się tylko raz.
    """

    def __init__(
        self,
        settings: Optional[NIPRegistrySettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._owns_client = http_client is None
        self._clock = clock
        self._sid: Optional[str] = None
        self._session_expires: float = 0.0
        self._session_lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "GUS_BIR1"

    @property
    def priority(self) -> int:
        return 1

    @property
    def api_key(self) -> str:
        if self.settings.gus_use_test:
            return self.settings.gus_api_key or GUS_TEST_API_KEY
        return self.settings.gus_api_key

    @property
    def bir_host(self) -> str:
        """Host API GUS - test lub produkcja."""
        if self.settings.gus_use_test or self.api_key == GUS_TEST_API_KEY:
            return "wyszukiwarkaregontest.stat.gov.pl"
        return "wyszukiwarkaregon.stat.gov.pl"

    @property
    def bir_url(self) -> str:
        return f"https://{self.bir_host}/wsBIR/UslugaBIRzewnPubl.svc"

    @property
    def session_ttl(self) -> float:
        return self.settings.gus_session_ttl_minutes * 60.0

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization klienta HTTP."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0),
                headers={"User-Agent": "NIPRegistry/1.0"},
            )
        return self._http_client

    async def close(self):
        """Wyloguj z GUS i zamknij klienta HTTP."""
        if self._sid and self._http_client is not None:
            try:
                await self._post_soap(
                    self._build_logout_envelope(self._sid),
                    timeout=self.settings.gus_login_timeout_sec,
                )
                logger.debug("GUS: wylogowano")
            except httpx.HTTPError as e:
                logger.warning("GUS: błąd wylogowania: %s", e)
        self._sid = None
        self._session_expires = 0.0
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ============================================
    # Kontrakt dostawcy
    # ============================================

    async def is_available(self) -> bool:
        if not self.settings.has_gus_credentials:
            logger.debug("GUS: brak klucza API - dostawca niedostępny")
            return False

        try:
            await self._ensure_session()
            return True
        except Exception as e:
            logger.warning("GUS: dostawca niedostępny: %s", e)
            return False

    async def lookup(self, nip: str) -> Optional[LookupResult]:
        sid = await self._ensure_session()

        logger.info("GUS: wyszukuję NIP=%s (host=%s)", nip, self.bir_host)
        try:
            basic = await self._search_by_nip(nip, sid)
        except GUSProviderError:
            # BIR odrzuca wygasłą sesję błędem - następne wywołanie loguje się ponownie
            self._invalidate_session(sid)
            raise

        if basic is None or not basic.get("regon"):
            logger.info("GUS: NIP %s nie znaleziony", nip)
            return None

        report = await self._get_full_report(basic["regon"], basic.get("typ"), sid)

        result = self._map_to_result(nip, basic, report)
        logger.info("GUS: znaleziono firmę: %s (REGON: %s)", result.name, result.regon)
        return result

    # ============================================
    # Sesja
    # ============================================

    def _session_valid(self) -> bool:
        return bool(self._sid) and self._clock() < self._session_expires

    def _invalidate_session(self, sid: str):
        if self._sid == sid:
            logger.debug("GUS: unieważniam sesję")
            self._sid = None
            self._session_expires = 0.0

    async def _ensure_session(self) -> str:
        """Zwraca ważny SID, logując się ponownie gdy sesja wygasła."""
        if self._session_valid():
            return self._sid

        async with self._session_lock:
            # Inna korutyna mogła odświeżyć sesję, gdy czekaliśmy na lock
            if self._session_valid():
                return self._sid

            logger.debug("GUS: tworzę nową sesję")
            sid = await self._login()
            self._sid = sid
            self._session_expires = self._clock() + self.session_ttl
            return sid

    async def _login(self) -> str:
        """Logowanie do GUS - zwraca SID."""
        response = await self._call(
            self._build_login_envelope(),
            timeout=self.settings.gus_login_timeout_sec,
            operation="Zaloguj",
        )

        sid_match = re.search(r"<ZalogujResult>([^<]*)</ZalogujResult>", response.text or "")
        sid = sid_match.group(1).strip() if sid_match else ""
        if not sid:
            raise GUSProviderError("GUS login returned no session id", provider=self.name)

        logger.debug("GUS: zalogowano, SID otrzymany")
        return sid

    # ============================================
    # Wywołania SOAP
    # ============================================

    async def _post_soap(
        self,
        envelope: str,
        sid: Optional[str] = None,
        timeout: float = 10.0,
    ) -> httpx.Response:
        """Wysyła żądanie SOAP do GUS."""
        client = self._get_client()

        headers = {
            "Content-Type": "application/soap+xml; charset=utf-8",
            "Accept": "application/soap+xml",
        }
        if sid:
            headers["sid"] = sid

        return await client.post(
            self.bir_url,
            content=envelope.encode("utf-8"),
            headers=headers,
            timeout=timeout,
        )

    async def _call(
        self,
        envelope: str,
        operation: str,
        sid: Optional[str] = None,
        timeout: float = 10.0,
    ) -> httpx.Response:
        """_post_soap z zamianą błędów transportu na GUSProviderError."""
        try:
            response = await self._post_soap(envelope, sid=sid, timeout=timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise GUSProviderError(f"GUS {operation} timed out", provider=self.name) from e
        except httpx.HTTPStatusError as e:
            raise GUSProviderError(
                f"GUS {operation} returned HTTP {e.response.status_code}", provider=self.name
            ) from e
        except httpx.HTTPError as e:
            raise GUSProviderError(f"GUS {operation} failed: {e}", provider=self.name) from e
        return response

    async def _search_by_nip(self, nip: str, sid: str) -> Optional[dict]:
        response = await self._call(
            self._build_search_envelope(nip),
            operation="DaneSzukajPodmioty",
            sid=sid,
            timeout=self.settings.gus_search_timeout_sec,
        )
        records = self._parse_result(response.text or "", "DaneSzukajPodmiotyResult")
        if not records:
            return None

        data = records[0]
        return {
            "regon": data.get("Regon"),
            "nip": data.get("Nip"),
            "statusNip": data.get("StatusNip"),
            "nazwa": data.get("Nazwa"),
            "wojewodztwo": data.get("Wojewodztwo"),
            "miejscowosc": data.get("Miejscowosc"),
            "kodPocztowy": data.get("KodPocztowy"),
            "ulica": data.get("Ulica"),
            "nrNieruchomosci": data.get("NrNieruchomosci"),
            "nrLokalu": data.get("NrLokalu"),
            "typ": data.get("Typ"),
        }

    async def _get_full_report(self, regon: str, entity_type: Optional[str], sid: str) -> dict:
        report_name = REPORT_NAMES.get((entity_type or "").upper())
        if report_name is None:
            logger.debug("GUS: brak raportu pełnego dla typu %s (REGON %s)", entity_type, regon)
            return {}

        response = await self._call(
            self._build_report_envelope(regon, report_name),
            operation="DanePobierzPelnyRaport",
            sid=sid,
            timeout=self.settings.gus_search_timeout_sec,
        )
        records = self._parse_result(response.text or "", "DanePobierzPelnyRaportResult")
        return records[0] if records else {}

    # ============================================
    # Parsowanie
    # ============================================

    def _escape_xml(self, unsafe: str) -> str:
        """Bezpieczne wstawianie wartości do SOAP XML."""
        if not isinstance(unsafe, str):
            return ""
        return (
            unsafe.replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&apos;")
        )

    def _decode_bir_inner_xml(self, encoded: str) -> str:
        """Dekodowanie wewnętrznego XML zwracanego przez GUS."""
        if not isinstance(encoded, str):
            return ""

        return (
            encoded.lstrip("\ufeff")
            .replace("&#xD;", "\r")
            .replace("&#xA;", "\n")
            .replace("&lt;", "<")
            .replace("&gt;", ">")
            .replace("&quot;", '"')
            .replace("&apos;", "'")
            .replace("&amp;", "&")
            .strip()
        )

    def _extract_soap_part(self, response_text: str) -> str:
        """Wyciąga część SOAP z odpowiedzi multipart (MTOM)."""
        if "Content-Type: application/xop+xml" not in response_text:
            return response_text

        match = re.search(
            r"Content-Type: application/xop\+xml[^\r\n]*\r?\n\r?\n([\s\S]*?)\r?\n--uuid:",
            response_text,
            re.MULTILINE | re.DOTALL,
        )
        return match.group(1) if match else response_text

    def _parse_result(self, response_text: str, result_tag: str) -> list[dict]:
        """
        Parsuje wynik operacji BIR do listy rekordów <dane>.

        Returns:
            Lista słowników {tag: tekst}; pusta gdy GUS nie ma danych

        Raises:
            GUSProviderError: niepoprawny XML lub błąd zgłoszony przez GUS
        """
        soap_part = self._extract_soap_part(response_text)

        if "<soap:Fault" in soap_part or "<s:Fault" in soap_part:
            raise GUSProviderError(f"GUS SOAP fault in {result_tag}", provider=self.name)

        if re.search(rf"<{result_tag}\s*/>", soap_part):
            return []

        result_match = re.search(
            rf"<{result_tag}>([\s\S]*?)</{result_tag}>",
            soap_part,
            re.MULTILINE | re.DOTALL,
        )
        if not result_match:
            raise GUSProviderError(f"GUS response has no {result_tag}", provider=self.name)

        decoded_xml = self._decode_bir_inner_xml(result_match.group(1))
        if not decoded_xml:
            return []

        try:
            root = ET.fromstring(decoded_xml)
        except ET.ParseError as e:
            raise GUSProviderError(f"GUS returned invalid XML: {e}", provider=self.name) from e

        records = []
        for dane in root.findall(".//dane"):
            record = {child.tag: (child.text or "").strip() or None for child in dane}

            error_code = record.get("ErrorCode")
            if error_code:
                if error_code == _NOT_FOUND_ERROR_CODE:
                    logger.debug("GUS: brak danych (%s)", record.get("ErrorMessagePl"))
                    continue
                raise GUSProviderError(
                    f"GUS error {error_code}: {record.get('ErrorMessageEn') or record.get('ErrorMessagePl')}",
                    provider=self.name,
                )

            records.append(record)

        return records

    def _map_to_result(self, nip: str, basic: dict, report: dict) -> LookupResult:
        """Mapuje dane z wyszukiwania i raportu na LookupResult."""
        krs = report.get("praw_numerWRejestrzeEwidencji") or None
        name = basic.get("nazwa") or report.get("praw_nazwa") or report.get("fiz_nazwa")

        return LookupResult(
            nip=nip,
            name=name,
            regon=basic.get("regon"),
            krs=krs,
            address=Address(
                street=format_street(
                    basic.get("ulica"),
                    basic.get("nrNieruchomosci"),
                    basic.get("nrLokalu"),
                ),
                city=basic.get("miejscowosc"),
                postal_code=basic.get("kodPocztowy"),
                country="PL",
            ),
            vat_status=map_vat_status(basic.get("statusNip")),
            source=ResultSource.OFFICIAL_REGISTRY,
        )

    # ============================================
    # Koperty SOAP
    # ============================================

    def _envelope(self, action: str, body: str, extra_ns: str = "") -> str:
        return (
            '<?xml version="1.0" encoding="utf-8"?>'
            '<soap:Envelope xmlns:soap="http://www.w3.org/2003/05/soap-envelope" '
            f'xmlns:ns="http://CIS/BIR/PUBL/2014/07"{extra_ns}>'
            '<soap:Header xmlns:wsa="http://www.w3.org/2005/08/addressing">'
            f'<wsa:To>{self.bir_url}</wsa:To>'
            f'<wsa:Action>{_ACTION_BASE}/{action}</wsa:Action>'
            '</soap:Header>'
            f'<soap:Body>{body}</soap:Body>'
            '</soap:Envelope>'
        )

    def _build_login_envelope(self) -> str:
        """Buduje envelope SOAP do logowania."""
        safe_api_key = self._escape_xml(self.api_key)
        return self._envelope(
            "Zaloguj",
            f'<ns:Zaloguj><ns:pKluczUzytkownika>{safe_api_key}</ns:pKluczUzytkownika></ns:Zaloguj>',
        )

    def _build_logout_envelope(self, sid: str) -> str:
        safe_sid = self._escape_xml(sid)
        return self._envelope(
            "Wyloguj",
            f'<ns:Wyloguj><ns:pIdentyfikatorSesji>{safe_sid}</ns:pIdentyfikatorSesji></ns:Wyloguj>',
        )

    def _build_search_envelope(self, nip: str) -> str:
        """Buduje envelope SOAP do wyszukiwania po NIP."""
        safe_nip = self._escape_xml(nip)
        return self._envelope(
            "DaneSzukajPodmioty",
            '<ns:DaneSzukajPodmioty>'
            '<ns:pParametryWyszukiwania>'
            '<q1:Krs xsi:nil="true"/>'
            '<q1:Krsy xsi:nil="true"/>'
            f'<q1:Nip>{safe_nip}</q1:Nip>'
            '<q1:Nipy xsi:nil="true"/>'
            '<q1:Regon xsi:nil="true"/>'
            '<q1:Regony14zn xsi:nil="true"/>'
            '<q1:Regony9zn xsi:nil="true"/>'
            '</ns:pParametryWyszukiwania>'
            '</ns:DaneSzukajPodmioty>',
            extra_ns=(
                ' xmlns:q1="http://CIS/BIR/PUBL/2014/07/DataContract"'
                ' xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"'
            ),
        )

    def _build_report_envelope(self, regon: str, report_name: str) -> str:
        """Buduje envelope SOAP do pobrania pełnego raportu."""
        return self._envelope(
            "DanePobierzPelnyRaport",
            '<ns:DanePobierzPelnyRaport>'
            f'<ns:pRegon>{self._escape_xml(regon)}</ns:pRegon>'
            f'<ns:pNazwaRaportu>{self._escape_xml(report_name)}</ns:pNazwaRaportu>'
            '</ns:DanePobierzPelnyRaport>',
        )
