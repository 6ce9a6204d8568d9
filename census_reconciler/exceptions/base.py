class BaseCensusError(Exception):
    pass
