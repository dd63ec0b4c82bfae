"""Snapshot document encoding.

Snapshots keep the document layout of the browser client's local storage:
camelCase keys, plans under ``grills``, numbers for money (strings for the
rare amount a float cannot hold exactly) and ISO strings for dates.
Transfers are written into both clients' ``transfers`` lists and folded
back into one record per id when loading.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from dateutil.parser import isoparse

from savings_ledger.models.base import AdminProfile, Notification, NotificationPreferences
from savings_ledger.models.ledger import (
    Client,
    ContributionStatus,
    Deposit,
    Loan,
    LoanPayment,
    LoanPaymentType,
    LoanStatus,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    Payment,
    Plan,
    TontineContribution,
    TontineGroup,
    TontineInterval,
    TontineMember,
    TontineStatus,
    Transfer,
    Withdrawal,
)
from savings_ledger.store.state import LedgerState, default_plans

SNAPSHOT_KEYS = ("clients", "grills", "tontineGroups", "adminProfile", "notifications")


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output.

    Money stays a JSON number while the float reads back as the same
    ``Decimal``; amounts that would lose digits are written as strings.
    """
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        as_float = float(value)
        return as_float if Decimal(repr(as_float)) == value else str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items() if v is not None}
    elif isinstance(value, list):
        return [serialize_value(v) for v in value]
    return value


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def _datetime(value: str | None) -> datetime | None:
    return isoparse(value) if value else None


def _date(value: str | None) -> date | None:
    return isoparse(value).date() if value else None


# Encoding


def _encode_reversal(record: Deposit | Withdrawal | Transfer) -> dict[str, Any]:
    if not record.reversed:
        return {}
    return {
        "reversed": True,
        "reversalDate": record.reversal_date,
        "reversalNote": record.reversal_note,
    }


def _encode_entry(record: Deposit | Withdrawal) -> dict[str, Any]:
    return {
        "id": record.transaction_id,
        "amount": record.amount,
        "date": record.date,
        "note": record.note,
        **_encode_reversal(record),
    }


def _encode_transfer(transfer: Transfer) -> dict[str, Any]:
    return {
        "id": transfer.transaction_id,
        "amount": transfer.amount,
        "date": transfer.date,
        "fromClientId": transfer.from_client_id,
        "toClientId": transfer.to_client_id,
        "note": transfer.note,
        **_encode_reversal(transfer),
    }


def _encode_loan(loan: Loan) -> dict[str, Any]:
    return {
        "id": loan.loan_id,
        "amount": loan.principal,
        "interestRate": loan.interest_rate,
        "startDate": loan.start_date,
        "dueDate": loan.due_date,
        "status": loan.status,
        "payments": [
            {"id": p.payment_id, "amount": p.amount, "date": p.date, "type": p.payment_type}
            for p in loan.payments
        ],
        "note": loan.note,
    }


def _encode_client(client: Client, transfers: list[Transfer]) -> dict[str, Any]:
    return {
        "id": client.client_id,
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "grillId": client.plan_id,
        "startDate": client.start_date,
        "payments": [
            {"day": p.day, "amount": p.amount, "paid": p.paid, "paidDate": p.paid_date}
            for p in client.payments
        ],
        "withdrawals": [_encode_entry(w) for w in client.withdrawals],
        "deposits": [_encode_entry(d) for d in client.deposits],
        "transfers": [_encode_transfer(t) for t in transfers],
        "loans": [_encode_loan(l) for l in client.loans],
        "isActive": client.is_active,
    }


def _encode_plan(plan: Plan) -> dict[str, Any]:
    return {
        "id": plan.plan_id,
        "name": plan.name,
        "baseAmount": plan.base_amount,
        "duration": plan.duration,
        "description": plan.description,
        "adminPercentage": plan.admin_percentage,
    }


def _encode_group(group: TontineGroup) -> dict[str, Any]:
    return {
        "id": group.group_id,
        "name": group.name,
        "contributionAmount": group.contribution_amount,
        "memberCount": group.member_count,
        "interval": group.interval,
        "customInterval": group.custom_interval,
        "startDate": group.start_date,
        "status": group.status,
        "description": group.description,
        "members": [
            {
                "id": m.member_id,
                "clientId": m.client_id,
                "payoutOrder": m.payout_order,
                "payoutDate": m.payout_date,
                "hasPaidOut": m.has_paid_out,
                "contributions": [
                    {
                        "id": c.contribution_id,
                        "amount": c.amount,
                        "date": c.due_date,
                        "periodNumber": c.period_number,
                        "status": c.status,
                    }
                    for c in m.contributions
                ],
            }
            for m in group.members
        ],
    }


def _encode_profile(profile: AdminProfile) -> dict[str, Any]:
    prefs = profile.notification_preferences
    return {
        "name": profile.name,
        "email": profile.email,
        "role": profile.role,
        "avatar": profile.avatar,
        "lastLogin": profile.last_login,
        "twoFactorEnabled": profile.two_factor_enabled,
        "notificationPreferences": {
            "email": prefs.email,
            "push": prefs.push,
            "desktop": prefs.desktop,
        },
    }


def _encode_notification(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.notification_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.notification_type,
        "date": notification.date,
        "read": notification.read,
        "link": notification.link,
        "category": notification.category,
        "priority": notification.priority,
    }


def to_snapshot(state: LedgerState) -> dict[str, Any]:
    """Encode the persisted part of a ledger state as a JSON-ready dict.

    Parameters
    ----------
    state : LedgerState
        State to encode. Selection ids are not persisted.

    Returns
    -------
    dict[str, Any]
        Snapshot document.
    """
    document = {
        "clients": [
            _encode_client(c, state.get_client_transfers(c.client_id))
            for c in state.clients.values()
        ],
        "grills": [_encode_plan(p) for p in state.plans.values()],
        "tontineGroups": [_encode_group(g) for g in state.tontine_groups.values()],
        "adminProfile": _encode_profile(state.admin_profile),
        "notifications": [_encode_notification(n) for n in state.notifications],
    }
    return serialize_value(document)


# Decoding


def _decode_reversal(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "reversed": bool(data.get("reversed", False)),
        "reversal_date": _datetime(data.get("reversalDate")),
        "reversal_note": data.get("reversalNote"),
    }


def _decode_deposit(data: dict[str, Any]) -> Deposit:
    return Deposit(
        transaction_id=data["id"],
        amount=_decimal(data["amount"]),
        date=_datetime(data["date"]),
        note=data.get("note"),
        **_decode_reversal(data),
    )


def _decode_withdrawal(data: dict[str, Any]) -> Withdrawal:
    return Withdrawal(
        transaction_id=data["id"],
        amount=_decimal(data["amount"]),
        date=_datetime(data["date"]),
        note=data.get("note"),
        **_decode_reversal(data),
    )


def _decode_transfer(data: dict[str, Any]) -> Transfer:
    return Transfer(
        transaction_id=data["id"],
        amount=_decimal(data["amount"]),
        date=_datetime(data["date"]),
        from_client_id=data["fromClientId"],
        to_client_id=data["toClientId"],
        note=data.get("note"),
        **_decode_reversal(data),
    )


def _decode_loan(data: dict[str, Any]) -> Loan:
    return Loan(
        loan_id=data["id"],
        principal=_decimal(data["amount"]),
        interest_rate=_decimal(data["interestRate"]),
        start_date=_date(data["startDate"]),
        due_date=_date(data["dueDate"]),
        status=LoanStatus(data.get("status", LoanStatus.PENDING.value)),
        payments=[
            LoanPayment(
                payment_id=p["id"],
                amount=_decimal(p["amount"]),
                date=_datetime(p["date"]),
                payment_type=LoanPaymentType(p["type"]),
            )
            for p in data.get("payments", [])
        ],
        note=data.get("note"),
    )


def _decode_client(data: dict[str, Any]) -> Client:
    return Client(
        client_id=data["id"],
        name=data["name"],
        email=data.get("email", ""),
        phone=data.get("phone", ""),
        start_date=_datetime(data["startDate"]),
        plan_id=data.get("grillId") or None,
        payments=[
            Payment(
                day=p["day"],
                amount=_decimal(p["amount"]),
                paid=bool(p.get("paid", False)),
                paid_date=_datetime(p.get("paidDate")),
            )
            for p in data.get("payments", [])
        ],
        withdrawals=[_decode_withdrawal(w) for w in data.get("withdrawals") or []],
        deposits=[_decode_deposit(d) for d in data.get("deposits") or []],
        loans=[_decode_loan(l) for l in data.get("loans") or []],
        is_active=bool(data.get("isActive", True)),
    )


def _decode_plan(data: dict[str, Any]) -> Plan:
    return Plan(
        plan_id=data["id"],
        name=data["name"],
        base_amount=_decimal(data["baseAmount"]),
        duration=int(data["duration"]),
        admin_percentage=_decimal(data.get("adminPercentage", 10)),
        description=data.get("description"),
    )


def _decode_group(data: dict[str, Any]) -> TontineGroup:
    return TontineGroup(
        group_id=data["id"],
        name=data["name"],
        contribution_amount=_decimal(data["contributionAmount"]),
        member_count=int(data["memberCount"]),
        interval=TontineInterval(data["interval"]),
        start_date=_date(data["startDate"]),
        status=TontineStatus(data.get("status", TontineStatus.PENDING.value)),
        custom_interval=data.get("customInterval"),
        description=data.get("description"),
        members=[
            TontineMember(
                member_id=m["id"],
                client_id=m["clientId"],
                payout_order=int(m["payoutOrder"]),
                payout_date=_date(m.get("payoutDate")),
                has_paid_out=bool(m.get("hasPaidOut", False)),
                contributions=[
                    TontineContribution(
                        contribution_id=c["id"],
                        amount=_decimal(c["amount"]),
                        due_date=_date(c["date"]),
                        period_number=int(c["periodNumber"]),
                        status=ContributionStatus(c.get("status", "pending")),
                    )
                    for c in m.get("contributions", [])
                ],
            )
            for m in data.get("members", [])
        ],
    )


def _decode_profile(data: dict[str, Any] | None) -> AdminProfile:
    if not data:
        return AdminProfile()
    prefs = data.get("notificationPreferences") or {}
    return AdminProfile(
        name=data.get("name", "Admin User"),
        email=data.get("email", ""),
        role=data.get("role", ""),
        avatar=data.get("avatar"),
        last_login=_datetime(data.get("lastLogin")),
        two_factor_enabled=bool(data.get("twoFactorEnabled", False)),
        notification_preferences=NotificationPreferences(**prefs),
    )


def _decode_notification(data: dict[str, Any]) -> Notification:
    return Notification(
        notification_id=data["id"],
        title=data["title"],
        message=data["message"],
        notification_type=NotificationType(data.get("type", "info")),
        date=_datetime(data["date"]),
        read=bool(data.get("read", False)),
        link=data.get("link"),
        category=NotificationCategory(data["category"]) if data.get("category") else None,
        priority=NotificationPriority(data["priority"]) if data.get("priority") else None,
    )


def _collect_transfers(clients: list[dict[str, Any]]) -> dict[str, Transfer]:
    """Fold every client's copy of each transfer into one record.

    A copy marked reversed wins over one that is not, since reversal is
    terminal.
    """
    transfers: dict[str, Transfer] = {}
    for client in clients:
        for data in client.get("transfers") or []:
            transfer = _decode_transfer(data)
            known = transfers.get(transfer.transaction_id)
            if known is None or (transfer.reversed and not known.reversed):
                transfers[transfer.transaction_id] = transfer
    return transfers


def from_snapshot(document: dict[str, Any]) -> LedgerState:
    """Decode a snapshot document into a ledger state.

    Missing collections fall back to empty ones (the default plan catalog
    when ``grills`` is absent).

    Raises
    ------
    KeyError, ValueError, TypeError
        When a record lacks a required field or holds an invalid value.
    """
    clients = document.get("clients")
    clients = clients if isinstance(clients, list) else []
    grills = document.get("grills")
    groups = document.get("tontineGroups")
    notifications = document.get("notifications")

    plans = (
        {p.plan_id: p for p in (_decode_plan(g) for g in grills)}
        if isinstance(grills, list)
        else default_plans()
    )

    return LedgerState(
        clients={c.client_id: c for c in (_decode_client(d) for d in clients)},
        plans=plans,
        tontine_groups=(
            {g.group_id: g for g in (_decode_group(d) for d in groups)}
            if isinstance(groups, list)
            else {}
        ),
        transfers=_collect_transfers(clients),
        admin_profile=_decode_profile(document.get("adminProfile")),
        notifications=(
            [_decode_notification(n) for n in notifications]
            if isinstance(notifications, list)
            else []
        ),
    )
