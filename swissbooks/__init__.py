"""
Swissbooks - Source Package

Bookkeeping for Swiss small businesses: invoice numbering, QR-bill
payment references, CHF conversion and the yearly revenue report
handed in with the tax return.

DESIGN PRINCIPLES:
1. Same invoices + same rate snapshot -> same report
2. Fail early, fail visibly (no partial report files)
3. The only silent-ish recovery is the logged 1:1 conversion fallback
4. Every run is auditable
"""

__version__ = "1.0.0"
__author__ = "Swissbooks Team"
