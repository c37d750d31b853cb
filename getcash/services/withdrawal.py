from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError
from ..core.logger import logger
from .rules import compute_fee, format_ugx, validate_withdrawal
from .wallet import debit_personal, get_or_create_wallet


def withdrawal_to_dict(w: models.Withdrawal) -> dict:
    return {
        "id": w.id,
        "userId": w.user_id,
        "amount": w.amount,
        "fee": w.fee,
        "finalAmount": w.final_amount,
        "phone": w.phone,
        "recipientName": w.recipient_name,
        "network": w.network,
        "status": w.status,
        "timestamp": w.created_at.isoformat() if w.created_at else None,
    }


def request_withdrawal(db: Session, user_id: int, amount, phone: Optional[str],
                       recipient_name: Optional[str], network: Optional[str]) -> dict:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    wallet = get_or_create_wallet(db, user_id)
    validate_withdrawal(amount, phone, recipient_name, network, wallet.personal_wallet)

    fee = compute_fee(amount)
    final_amount = amount - fee

    # the full requested amount leaves the wallet; the fee is taken from the payout
    if not debit_personal(db, user_id, amount):
        db.rollback()
        db.refresh(wallet)
        raise ValidationError(
            f"Insufficient balance. Available: {format_ugx(wallet.personal_wallet)}",
            {"available": wallet.personal_wallet},
        )

    record = models.Withdrawal(
        user_id=user_id,
        amount=amount,
        fee=fee,
        final_amount=final_amount,
        phone=phone.strip(),
        recipient_name=recipient_name.strip(),
        network=network.strip(),
        status="Processing",
    )
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Withdrawal of {amount} failed for user {user_id}: {e}")
        raise PersistenceError("Failed to process withdrawal")

    db.refresh(wallet)
    logger.info(f"User {user_id} requested withdrawal {amount} (fee {fee}) to {record.network}")
    return {"withdrawal": withdrawal_to_dict(record), "newBalance": wallet.personal_wallet}


def list_withdrawals(db: Session, user_id: int) -> List[dict]:
    rows = db.query(models.Withdrawal).filter(models.Withdrawal.user_id == user_id)\
        .order_by(models.Withdrawal.created_at.desc(), models.Withdrawal.id.desc()).all()
    return [withdrawal_to_dict(w) for w in rows]
