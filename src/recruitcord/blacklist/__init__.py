from recruitcord.blacklist.ledger import BlacklistLedger

__all__ = ["BlacklistLedger"]
