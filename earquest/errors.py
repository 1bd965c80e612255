class EarQuestError(Exception):
	pass


class ConfigurationError(EarQuestError):
	"""A difficulty preset or settings object cannot produce a question (empty pool, bad range)."""


# Name used by the generator contract.
InvalidConfiguration = ConfigurationError


class PersistenceUnavailable(EarQuestError):
	"""The storage backend could not be read or written."""
