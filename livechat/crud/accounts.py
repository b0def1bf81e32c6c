from sqlalchemy import or_
from sqlalchemy.orm import Session

from livechat.models import Account


def get_account(db: Session, account_id: int) -> Account | None:
    return db.get(Account, account_id)


def get_account_by_name(db: Session, name: str) -> Account | None:
    return db.query(Account).filter(Account.name == name).first()


def name_or_email_taken(db: Session, name: str, email: str, *, exclude_id: int | None = None) -> bool:
    query = db.query(Account.id).filter(or_(Account.name == name, Account.email == email))
    if exclude_id is not None:
        query = query.filter(Account.id != exclude_id)
    return query.first() is not None


def create_account(db: Session, name: str, email: str, password_hash: str) -> Account:
    account = Account(name=name, email=email, password_hash=password_hash)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def update_account(db: Session, account_id: int, name: str, email: str) -> Account | None:
    account = get_account(db, account_id)
    if account is None:
        return None
    account.name = name
    account.email = email
    db.commit()
    db.refresh(account)
    return account
