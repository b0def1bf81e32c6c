from sqlalchemy.orm import Session

from livechat.models import Account, Message


def list_messages(db: Session) -> list[tuple[int, int, str, str]]:
    """Rows of (chat id, account id, text, current author name) in insertion order."""
    rows = (
        db.query(Message.id, Message.account_id, Message.text, Account.name)
        .join(Account, Message.account_id == Account.id)
        .order_by(Message.id.asc())
        .all()
    )
    return [(row[0], row[1], row[2], row[3]) for row in rows]


def create_message(db: Session, account_id: int, text: str) -> Message:
    message = Message(account_id=account_id, text=text)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def delete_message(db: Session, message_id: int) -> int:
    deleted = db.query(Message).filter(Message.id == message_id).delete(synchronize_session=False)
    db.commit()
    return deleted
