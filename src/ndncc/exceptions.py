class ConfigurationError(ValueError):
    """
    Raised at setup when a parameter or variant name is invalid.
    """


class CatalogExhaustedError(AssertionError):
    """
    Raised when every catalog entry is already outstanding and no further
    request can be sampled without duplicates.
    """

    def __init__(self, *, catalog_size: int, outstanding: int) -> None:
        self.catalog_size = catalog_size
        self.outstanding = outstanding

    def __str__(self) -> str:
        return "Content catalog exhausted: %d outstanding, catalog size %d" % (
            self.outstanding,
            self.catalog_size,
        )
