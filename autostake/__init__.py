# MIT License
# Copyright (c) 2025 Hashborn

"""Deterministic token factory, fee-on-transfer ledger and reward accrual."""

__version__ = "0.1.0"
