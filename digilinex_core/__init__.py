# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of DigiLinex Core.
#
# DigiLinex Core is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
DigiLinex Core
==============

Server-side core of the DigiLinex rewards dashboard: daily mining claims,
streak accrual, team credits and claim history.
"""

__version__ = "0.3.0"

# Versioning for persisted claim records.
# When changing the record layout or id derivation, bump this string.
CLAIM_SCHEMA_VERSION = "v1"
