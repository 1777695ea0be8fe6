from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from sandwich_scanner.app.infrastructure.db.db_base import BaseDB


class ScanRangesDB(BaseDB):
    """
    Scan ledger: block intervals of a pair's history that were (or are being) scanned.

    Ranges of one pair never overlap. A row is only updated once, by the job
    that owns it, to set either scan_complete or scan_failed.
    """

    __tablename__ = "scan_ranges"
    __table_args__ = (
        CheckConstraint("lower_bound <= upper_bound", name="ck_scan_ranges_bounds"),
        CheckConstraint("NOT (scan_complete AND scan_failed)", name="ck_scan_ranges_status"),
        Index("ix_scan_ranges_pair_bounds", "pair_id", "lower_bound", "upper_bound"),
        {"schema": "domain"},
    )

    range_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    pair_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("domain.pairs.pair_id"), nullable=False
    )
    lower_bound: Mapped[int] = mapped_column(BigInteger, nullable=False)
    upper_bound: Mapped[int] = mapped_column(BigInteger, nullable=False)
    scan_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scan_failed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
