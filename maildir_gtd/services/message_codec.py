"""Message codec - .eml format handling.

Creates and parses RFC 5322 messages carrying GTD metadata in ``X-GTD-*``
extension headers, and encodes Maildir flags in filenames.

Filenames use ``_2,`` instead of the Maildir ``:2,`` separator because
cloud-sync clients reject ``:`` in filenames on Windows::

    Traditional Maildir:  1700000000.123.host:2,FS
    Written here:         1700000000.123.host_2,FS.eml

Both separators are accepted when reading flags.
"""

import os
import re
import time
import uuid
from datetime import datetime, timezone
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser, Parser
from email.utils import formataddr, format_datetime, getaddresses, make_msgid, parsedate_to_datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Union

import structlog

from maildir_gtd.core.exceptions import DecodingError, EncodingError
from maildir_gtd.models.message import (
    Attachment,
    EmailAddress,
    GTDMetadata,
    MaildirFlags,
    ParsedMessage,
)

FLAGS_PATTERN = re.compile(r"[_:]2,([A-Z]*)")

GTD_HEADERS = {
    "project": "X-GTD-Project",
    "context": "X-GTD-Context",
    "priority": "X-GTD-Priority",
    "status": "X-GTD-Status",
    "tags": "X-GTD-Tags",
}

NO_SUBJECT = "(No subject)"

# Unix line endings regardless of platform
EML_POLICY = policy.default.clone(linesep="\n")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_flags(filename: str) -> MaildirFlags:
    """Decode Maildir flags after either ``_2,`` or ``:2,``.

    S = Seen, R = Replied, F = Flagged, D = Draft, T = Trashed. Filenames
    without an info section have no flags set.
    """
    match = FLAGS_PATTERN.search(filename)
    return MaildirFlags.from_letters(match.group(1) if match else "")


def parse_tags(header: Optional[str]) -> Optional[List[str]]:
    if header is None or not header.strip():
        return None
    return [tag.strip() for tag in header.split(",")]


class MessageCodec:
    """Encodes and decodes GTD work items as .eml messages."""

    def __init__(
        self,
        hostname: str = "swoft.local",
        domain: str = "swoft.ai",
        logger: Optional[Any] = None
    ):
        # ':' '/' and '_' would corrupt the unique part or the info separator
        self.hostname = re.sub(r"[:/_\\]", "-", hostname)
        self.domain = domain
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def unknown_address(self) -> str:
        return f"unknown@{self.domain}"

    def encode(
        self,
        from_: EmailAddress,
        to: Union[EmailAddress, Iterable[EmailAddress]],
        subject: str,
        text: str,
        html: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None,
        gtd: Optional[GTDMetadata] = None
    ) -> str:
        """Create a .eml message.

        Raises:
            EncodingError: if the message cannot be built (bad header values,
                malformed attachment content types, ...)
        """
        recipients = [to] if isinstance(to, EmailAddress) else list(to)

        try:
            message = EmailMessage(policy=EML_POLICY)
            message["From"] = self._format_address(from_)
            message["To"] = ", ".join(self._format_address(addr) for addr in recipients)
            message["Subject"] = subject
            message["Date"] = format_datetime(datetime.now(timezone.utc))
            message["Message-ID"] = make_msgid(domain=self.domain)

            for header, value in self._build_gtd_headers(gtd):
                message[header] = value

            message.set_content(normalize_newlines(text))
            if html:
                message.add_alternative(normalize_newlines(html), subtype="html")

            for attachment in attachments or []:
                maintype, _, subtype = attachment.content_type.partition("/")
                if not maintype or not subtype:
                    raise ValueError(f"Invalid content type: {attachment.content_type}")
                content = attachment.content
                if isinstance(content, str):
                    content = content.encode("utf-8")
                message.add_attachment(
                    content,
                    maintype=maintype,
                    subtype=subtype,
                    filename=attachment.filename
                )

            return message.as_string(policy=EML_POLICY)

        except Exception as e:
            self._logger.error("Failed to encode message", subject=subject, error=str(e))
            raise EncodingError(f"Failed to encode message: {e}", {"subject": subject})

    def decode(self, raw: Union[str, bytes]) -> ParsedMessage:
        """Parse a .eml message.

        Incomplete messages decode with defaults (synthesized Message-ID,
        ``unknown@`` addresses, "(No subject)", current date).

        Raises:
            DecodingError: if the content is empty or cannot be parsed at all
        """
        if not raw or not raw.strip():
            raise DecodingError("Empty message content")

        try:
            if isinstance(raw, bytes):
                message = BytesParser(policy=EML_POLICY).parsebytes(raw)
            else:
                message = Parser(policy=EML_POLICY).parsestr(raw)

            from_addresses = self._extract_addresses(message, "From")
            return ParsedMessage(
                message_id=self._header(message, "Message-ID") or self.generate_message_id(),
                from_=from_addresses[0],
                to=self._extract_addresses(message, "To"),
                subject=self._header(message, "Subject") or NO_SUBJECT,
                date=self._extract_date(message),
                text=self._extract_body(message, "plain") or "",
                html=self._extract_body(message, "html"),
                attachments=self._extract_attachments(message),
                gtd=self._extract_gtd_metadata(message),
            )
        except DecodingError:
            raise
        except Exception as e:
            raise DecodingError(f"Failed to parse message: {e}")

    def generate_filename(self, flags: Union[str, MaildirFlags] = "", sequence: int = 0) -> str:
        """Generate a Maildir filename.

        Format: ``{timestamp}.{pid}.{hostname}_2,{flags}.eml``. A non-zero
        sequence disambiguates writes from one process within one second:
        ``{timestamp}.{pid}Q{sequence}.{hostname}_2,{flags}.eml``.
        """
        if isinstance(flags, MaildirFlags):
            flags = flags.to_letters()

        timestamp = int(time.time())
        pid = os.getpid()
        process = f"{pid}Q{sequence}" if sequence else str(pid)
        return f"{timestamp}.{process}.{self.hostname}_2,{flags}.eml"

    def generate_message_id(self) -> str:
        timestamp = int(time.time() * 1000)
        return f"<{timestamp}.{uuid.uuid4().hex[:13]}@{self.domain}>"

    # Private helper methods

    @staticmethod
    def _format_address(addr: EmailAddress) -> str:
        return formataddr((addr.name, addr.email)) if addr.name else addr.email

    @staticmethod
    def _build_gtd_headers(gtd: Optional[GTDMetadata]) -> List[tuple]:
        if gtd is None:
            return []

        headers = []
        for field_name, header in GTD_HEADERS.items():
            value = getattr(gtd, field_name)
            if field_name == "tags":
                value = ", ".join(value) if value else None
            elif isinstance(value, Enum):
                value = value.value
            if value:
                headers.append((header, str(value)))
        return headers

    @staticmethod
    def _header(message: EmailMessage, name: str) -> Optional[str]:
        value = message.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def _extract_addresses(self, message: EmailMessage, name: str) -> List[EmailAddress]:
        values = [str(value) for value in message.get_all(name, [])]
        addresses = [
            EmailAddress(email=email or self.unknown_address, name=display or None)
            for display, email in getaddresses(values)
            if display or email
        ]
        return addresses or [EmailAddress(email=self.unknown_address)]

    @staticmethod
    def _extract_date(message: EmailMessage) -> datetime:
        try:
            raw = message.get("Date")
            if raw is not None:
                parsed = parsedate_to_datetime(str(raw))
                if parsed is not None:
                    return parsed
        except (TypeError, ValueError, IndexError):
            pass
        return datetime.now(timezone.utc)

    @staticmethod
    def _extract_body(message: EmailMessage, subtype: str) -> Optional[str]:
        body = message.get_body(preferencelist=(subtype,))
        if body is None:
            return None
        try:
            return body.get_content()
        except LookupError:
            # Unknown charset label (e.g. unknown-8bit): keep the body readable
            payload = body.get_payload(decode=True) or b""
            return payload.decode("utf-8", errors="replace")

    @staticmethod
    def _extract_attachments(message: EmailMessage) -> List[Attachment]:
        return [
            Attachment(
                filename=part.get_filename() or "attachment",
                content=part.get_payload(decode=True) or b"",
                content_type=part.get_content_type(),
            )
            for part in message.iter_attachments()
        ]

    def _extract_gtd_metadata(self, message: EmailMessage) -> GTDMetadata:
        return GTDMetadata(
            project=self._header(message, "x-gtd-project"),
            context=self._header(message, "x-gtd-context"),
            priority=self._header(message, "x-gtd-priority"),
            status=self._header(message, "x-gtd-status"),
            tags=parse_tags(self._header(message, "x-gtd-tags")),
        )
