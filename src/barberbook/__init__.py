"""barberbook - business calendar and financial period aggregation for a barbershop POS.

Resolves Cairo business days and weeks (noon to 06:00) from any instant and
folds bill, bill line and pocket expense snapshots into gross, cost, net
and profit-share totals per period and per cashier.
"""

__version__ = "0.1.0"
