"""Contact provisioning: phone numbers for call channels, short link ids for web/chat."""
import secrets
from sqlalchemy.orm import Session
from models import Interviewer

# No 0/O or 1/I so codes survive being read aloud
LINK_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
LINK_ID_LENGTH = 6

CALL_CHANNELS = ("inbound_call", "outbound_call")
LINK_CHANNELS = ("web_link", "chat")


def generate_link_id() -> str:
    return "".join(secrets.choice(LINK_ID_ALPHABET) for _ in range(LINK_ID_LENGTH))


def generate_phone_number() -> str:
    exchange = secrets.randbelow(900) + 100
    line = secrets.randbelow(9000) + 1000
    return f"+1 (555) {exchange}-{line}"


def _unique_link_id(db: Session) -> str:
    while True:
        link_id = generate_link_id()
        taken = db.query(Interviewer).filter(Interviewer.link_id == link_id).first()
        if not taken:
            return link_id


def provision_contact(db: Session, interviewer: Interviewer) -> dict:
    """Assign fresh contact details for the interviewer's channel."""
    interviewer.phone_number = None
    interviewer.link_id = None
    if interviewer.channel in CALL_CHANNELS:
        interviewer.phone_number = generate_phone_number()
    elif interviewer.channel in LINK_CHANNELS:
        interviewer.link_id = _unique_link_id(db)
    interviewer.credentials_ready = True
    return contact_for(interviewer)


def contact_for(interviewer: Interviewer) -> dict:
    contact = {}
    if interviewer.phone_number:
        contact["phone_number"] = interviewer.phone_number
    if interviewer.link_id:
        contact["link_id"] = interviewer.link_id
    return contact
