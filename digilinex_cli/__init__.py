# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 DigiLinex Contributors
"""
DigiLinex CLI Module

Command-line access to the mining ledger.

Commands:
- status <account>: Show balance, streak and countdown
- claim <account>: Claim the daily reward
- history <account>: Show recent and older claims
- credit <account> <amount> --from <uid>: Record a team credit

Usage:
    python -m digilinex_cli status user123
    python -m digilinex_cli --now 2025-01-01T00:00:00+00:00 claim user123
    DIGILINEX_STORE_BACKEND=firestore python -m digilinex_cli history user123
"""

from digilinex_cli.mining_cmd import main

__all__ = ["main"]

if __name__ == "__main__":
    main()
