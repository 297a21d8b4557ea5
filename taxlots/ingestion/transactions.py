"""Transaction log adapter for JSON and CSV exports.

Accepts the dashboard's camelCase export (``pricePerShare``, ``splitRatio``,
``type``) as well as snake_case column names. File order is preserved: the
engine, not the adapter, decides whether the log is correctly sorted.
"""

import csv
import json
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path

from pydantic import ValidationError

from taxlots.exceptions import DataValidationError
from taxlots.ingestion.base import BaseAdapter, ImportResult
from taxlots.models.enums import TransactionKind
from taxlots.models.lots import LotSelection
from taxlots.models.transaction import PRICED_KINDS, Transaction
from taxlots.normalization.events import TransactionLogNormalizer

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_KEY_ALIASES = {
    "type": "kind",
    "price": "price_per_share",
    "transaction_id": "id",
    "symbol": "ticker",
}

_DECIMAL_FIELDS = ("shares", "price_per_share", "amount", "fees")
_TEXT_FIELDS = ("notes", "split_ratio", "new_ticker")


def _snake_key(key: str) -> str:
    snake = _CAMEL_BOUNDARY.sub("_", key.strip()).lower().replace(" ", "_")
    return _KEY_ALIASES.get(snake, snake)


def _decimal_or_none(value: object, field_name: str) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return Decimal(str(value).replace(",", "").replace("$", "").strip())
    except InvalidOperation:
        raise DataValidationError(field_name, f"not a number: {value!r}")


def _text_or_none(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _load_json(file_path: Path, field_name: str) -> object:
    try:
        return json.loads(file_path.read_text())
    except json.JSONDecodeError as exc:
        raise DataValidationError(field_name, f"invalid JSON in {file_path.name}: {exc}") from exc


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'value'}: {error['msg']}"
        for error in exc.errors()
    )


class TransactionFileAdapter(BaseAdapter):
    """Reads a transaction log from a ``.json`` or ``.csv`` file."""

    def parse(self, file_path: Path) -> ImportResult:
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        suffix = file_path.suffix.lower()
        if suffix == ".json":
            records = self._read_json(file_path)
        elif suffix == ".csv":
            records = self._read_csv(file_path)
        else:
            raise DataValidationError("file", f"unsupported file type {suffix!r} (use .json or .csv)")

        transactions = [self.to_transaction(record, index) for index, record in enumerate(records)]
        return ImportResult(source=str(file_path), transactions=transactions)

    def validate(self, data: ImportResult) -> list[str]:
        """Report duplicate ids and out-of-order dates without raising."""
        errors: list[str] = []
        seen: set[str] = set()
        for txn in data.transactions:
            if txn.id in seen:
                errors.append(f"Duplicate transaction id: {txn.id}")
            seen.add(txn.id)
        errors.extend(TransactionLogNormalizer().ordering_problems(data.transactions))
        return errors

    @staticmethod
    def _read_json(file_path: Path) -> list[dict]:
        raw = _load_json(file_path, "file")
        if isinstance(raw, dict):
            raw = raw.get("transactions", [raw])
        if not isinstance(raw, list):
            raise DataValidationError("file", "expected a list of transaction objects")
        return raw

    @staticmethod
    def _read_csv(file_path: Path) -> list[dict]:
        with file_path.open(newline="") as handle:
            return list(csv.DictReader(handle))

    def to_transaction(self, record: dict, index: int) -> Transaction:
        """Build a Transaction from one raw record.

        Missing ids become ``<TICKER>-<row>``. A missing amount on a buy or
        sell is derived from shares, price and fees.
        """
        if not isinstance(record, dict):
            raise DataValidationError(f"record[{index}]", "expected an object")
        data = {_snake_key(k): v for k, v in record.items() if k is not None}

        ticker = _text_or_none(data.get("ticker"))
        if ticker is None:
            raise DataValidationError(f"record[{index}].ticker", "ticker is required")

        raw_kind = _text_or_none(data.get("kind"))
        try:
            kind = TransactionKind((raw_kind or "").lower().replace(" ", "_"))
        except ValueError:
            raise DataValidationError(f"record[{index}].kind", f"unknown transaction type {raw_kind!r}")

        raw_date = _text_or_none(data.get("date"))
        try:
            txn_date = date.fromisoformat((raw_date or "")[:10])
        except ValueError:
            raise DataValidationError(f"record[{index}].date", f"not an ISO date: {raw_date!r}")

        values = {name: _decimal_or_none(data.get(name), f"record[{index}].{name}") for name in _DECIMAL_FIELDS}
        if values["amount"] is None:
            values["amount"] = self._derive_amount(kind, values, index)

        try:
            return Transaction(
                id=_text_or_none(data.get("id")) or f"{ticker.upper()}-{index}",
                ticker=ticker,
                kind=kind,
                date=txn_date,
                shares=values["shares"],
                price_per_share=values["price_per_share"],
                amount=values["amount"],
                fees=values["fees"],
                **{name: _text_or_none(data.get(name)) for name in _TEXT_FIELDS},
            )
        except ValidationError as exc:
            raise DataValidationError(f"record[{index}]", _validation_message(exc)) from exc

    @staticmethod
    def _derive_amount(kind: TransactionKind, values: dict, index: int) -> Decimal:
        shares, price = values["shares"], values["price_per_share"]
        if kind not in PRICED_KINDS or shares is None or price is None:
            raise DataValidationError(f"record[{index}].amount", f"amount is required for {kind}")
        fees = values["fees"] or Decimal("0")
        gross = shares * price
        if kind == TransactionKind.SELL:
            return gross - fees
        return -(gross + fees)


def load_selections(file_path: Path) -> dict[str, list[LotSelection]]:
    """Read specific-lot selections: ``{sale_id: [{"lot_id": ..., "shares": ...}, ...]}``.

    A bare string entry names a lot to consume as far as needed.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    raw = _load_json(file_path, "selections")
    if not isinstance(raw, dict):
        raise DataValidationError("selections", "expected an object keyed by sale id")

    selections: dict[str, list[LotSelection]] = {}
    for sale_id, entries in raw.items():
        if not isinstance(entries, list):
            raise DataValidationError(f"selections.{sale_id}", "expected a list of lots")
        chosen: list[LotSelection] = []
        for entry in entries:
            if isinstance(entry, str):
                chosen.append(LotSelection(lot_id=entry))
                continue
            if not isinstance(entry, dict) or "lot_id" not in entry:
                raise DataValidationError(f"selections.{sale_id}", f"bad lot entry {entry!r}")
            try:
                chosen.append(LotSelection(
                    lot_id=str(entry["lot_id"]),
                    shares=_decimal_or_none(entry.get("shares"), f"selections.{sale_id}.shares"),
                ))
            except ValidationError as exc:
                raise DataValidationError(f"selections.{sale_id}", _validation_message(exc)) from exc
        selections[sale_id] = chosen
    return selections
