from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal
import logging
from database import get_db
from exceptions import LedgerError
from models.banks import Bank as BankModel
from models.purchase_orders import PurchaseOrder as PurchaseOrderModel
from schemas.expenses import Expense
from schemas.payments import PaymentPreview, PaymentProcessResult, PurchaseOrderPaymentRequest
from crud import purchase_order_payment as payment_crud
from utils import to_money
from utils.currency import ExchangeRateService, get_exchange_rates
from utils.tenancy import get_tenant_id
from utils.auth_utils import require_group, get_user_identifier
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/purchase-orders/{po_id}/payments", tags=["Purchase Order Payments"])
logger = logging.getLogger("purchase_order_payments")


def _get_po_or_404(db: Session, po_id: int, tenant_id: str) -> PurchaseOrderModel:
    db_po = db.query(PurchaseOrderModel).filter(PurchaseOrderModel.id == po_id, PurchaseOrderModel.tenant_id == tenant_id).first()
    if db_po is None:
        raise HTTPException(status_code=404, detail="Purchase Order not found")
    return db_po


def _get_bank_or_404(db: Session, bank_id: Optional[int], tenant_id: str) -> Optional[BankModel]:
    if bank_id is None:
        return None
    db_bank = db.query(BankModel).filter(BankModel.id == bank_id, BankModel.tenant_id == tenant_id).first()
    if db_bank is None:
        raise HTTPException(status_code=404, detail="Bank not found")
    return db_bank


def _payment_amount(po: PurchaseOrderModel, amount: Optional[Decimal], foreign_amount: Optional[Decimal], rates: ExchangeRateService) -> Decimal:
    if foreign_amount is not None:
        return rates.convert(foreign_amount)
    if amount is not None:
        return to_money(amount)
    return to_money(po.amount_due)


@router.get("/preview", response_model=PaymentPreview)
def preview_payment(
    po_id: int,
    bank_id: Optional[int] = None,
    amount: Optional[Decimal] = None,
    foreign_amount: Optional[Decimal] = None,
    db: Session = Depends(get_db),
    rates: ExchangeRateService = Depends(get_exchange_rates),
    user: dict = Depends(require_group(["admin", "payment-group"])),
    tenant_id: str = Depends(get_tenant_id)
):
    """Show how a payment would be split between supplier credit and bank, without saving anything."""
    db_po = _get_po_or_404(db, po_id, tenant_id)
    db_bank = _get_bank_or_404(db, bank_id, tenant_id)

    credit_balance = db_po.vendor.wallet_balance if db_po.vendor else Decimal("0")
    breakdown = payment_crud.calculate_payment_breakdown(
        _payment_amount(db_po, amount, foreign_amount, rates), credit_balance
    )

    bank_balance = None
    if db_bank is not None:
        bank_balance = payment_crud.calculate_final_balance(db_bank.current_balance, breakdown.from_bank)

    return PaymentPreview(
        purchase_order_id=db_po.id,
        supplier_credit_balance=to_money(credit_balance),
        breakdown=breakdown,
        description=payment_crud.generate_payment_description(db_po.reference_number, breakdown),
        bank_balance=bank_balance,
        validation=payment_crud.validate_payment(
            db_bank.current_balance if db_bank else Decimal("0"), breakdown.from_bank
        ),
    )


@router.post("/", response_model=PaymentProcessResult, status_code=status.HTTP_201_CREATED)
def process_payment(
    po_id: int,
    payment: PurchaseOrderPaymentRequest,
    db: Session = Depends(get_db),
    rates: ExchangeRateService = Depends(get_exchange_rates),
    user: dict = Depends(require_group(["admin", "payment-group"])),
    tenant_id: str = Depends(get_tenant_id)
):
    """Create payment drafts for approval; no balance moves until they are approved."""
    db_po = _get_po_or_404(db, po_id, tenant_id)
    db_bank = _get_bank_or_404(db, payment.bank_id, tenant_id)

    credit_balance = db_po.vendor.wallet_balance if db_po.vendor else Decimal("0")
    breakdown = payment_crud.calculate_payment_breakdown(
        _payment_amount(db_po, payment.amount, payment.foreign_amount, rates), credit_balance
    )
    if breakdown.total <= 0:
        raise HTTPException(status_code=400, detail=f"Nothing is due on {db_po.reference_number}")

    try:
        drafts = payment_crud.process_payment(
            db, db_po, db_bank, breakdown, get_user_identifier(user), submit_for_approval=payment.submit_for_approval
        )
    except LedgerError as e:
        raise to_http_exception(e)

    return PaymentProcessResult(
        breakdown=breakdown,
        description=payment_crud.generate_payment_description(db_po.reference_number, breakdown),
        wallet_expense=Expense.model_validate(drafts["wallet_expense"]) if drafts["wallet_expense"] else None,
        bank_expense=Expense.model_validate(drafts["bank_expense"]) if drafts["bank_expense"] else None,
    )
