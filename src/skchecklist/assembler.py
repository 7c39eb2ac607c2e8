"""Submission assembly — the last step before the signing endpoint.

Combines validated responses, the signer's attestation and device
metadata into the payload the document service records. Nothing is
assembled unless every required, visible field is answered and a
signature is present; there is no partial submission.

The signature is a typed full name used as an attestation token, not a
handwriting capture.
"""

import copy
import logging
import re
from typing import Any, Mapping, Optional

from .errors import MissingSignatureError, ValidationError
from .models import DeviceInfo, SubmissionPayload
from .tree import ChecklistIndex
from .validator import find_missing
from .visibility import compute_visible

logger = logging.getLogger("skchecklist.assembler")

MOBILE_PATTERN = re.compile(r"Mobile|Android|iPhone|iPad")

_OS_PATTERNS = (
    (re.compile(r"iPhone|iPad|iPod"), "iOS"),
    (re.compile(r"Android"), "Android"),
    (re.compile(r"Windows"), "Windows"),
    (re.compile(r"Mac OS X|Macintosh"), "macOS"),
    (re.compile(r"CrOS"), "ChromeOS"),
    (re.compile(r"Linux"), "Linux"),
)


def detect_device(
    user_agent: str,
    ip_address: Optional[str] = None,
    platform: Optional[str] = None,
) -> DeviceInfo:
    """Derive audit metadata from a browser user-agent string.

    Args:
        user_agent: Raw ``User-Agent`` header.
        ip_address: Client IP as seen by the caller.
        platform: Browser-reported platform; guessed from the user agent
            when omitted.

    Returns:
        DeviceInfo for the submission payload.
    """
    user_agent = user_agent or ""
    is_mobile = bool(MOBILE_PATTERN.search(user_agent))

    device_os = platform or ""
    if not device_os:
        for pattern, name in _OS_PATTERNS:
            if pattern.search(user_agent):
                device_os = name
                break

    return DeviceInfo(
        ip_address=ip_address or "",
        browser_signature=user_agent,
        browser_name=user_agent.split(" ")[0] if user_agent else "",
        is_mobile=is_mobile,
        device_type="Mobile" if is_mobile else "Desktop",
        device_os=device_os,
    )


def assemble(
    token: str,
    responses: Mapping[str, Any],
    signature: Optional[str],
    device_info: DeviceInfo,
    tree,
) -> SubmissionPayload:
    """Package a signing session's result for the signing endpoint.

    Validation runs before the signature check, so a signer is told about
    unanswered fields first.

    Args:
        token: Token of the document/link being signed.
        responses: Full response map (copied, never referenced).
        signature: Typed full name attesting to the responses, stored
            exactly as given.
        device_info: Caller-supplied audit metadata.
        tree: The checklist the responses answer.

    Returns:
        The SubmissionPayload.

    Raises:
        ValidationError: If required, visible fields are empty.
        MissingSignatureError: If ``signature`` is empty or blank.
    """
    index = ChecklistIndex.of(tree)
    visible = compute_visible(index, responses)
    missing = find_missing(index, visible, responses)
    if missing:
        logger.warning(
            "Submission for %s blocked: %d required field(s) missing",
            token[:8],
            len(missing),
        )
        raise ValidationError(missing)

    if not signature or not signature.strip():
        logger.warning("Submission for %s blocked: no signature", token[:8])
        raise MissingSignatureError()

    payload = SubmissionPayload(
        token=token,
        responses=copy.deepcopy(dict(responses)),
        signature_data=signature,
        ip_address=device_info.ip_address,
        browser_signature=device_info.browser_signature,
        browser_name=device_info.browser_name,
        is_mobile=1 if device_info.is_mobile else 0,
        device_type=device_info.device_type,
        device_os=device_info.device_os,
    )

    logger.info(
        "Assembled submission for %s (%d responses, %s)",
        token[:8],
        len(payload.responses),
        device_info.device_type,
    )
    return payload
