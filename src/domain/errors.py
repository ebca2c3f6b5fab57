class MergeSuiteError(Exception):
    pass


class ValidationError(MergeSuiteError):
    pass


class ProcessingError(MergeSuiteError):
    pass


class ParsingError(ProcessingError):
    pass


class FileIOError(MergeSuiteError):
    pass


class AssetResolutionError(MergeSuiteError):
    pass


class TargetMissingError(AssetResolutionError):
    pass


class SourcesMissingError(AssetResolutionError):
    pass


class InvalidTransitionError(MergeSuiteError):
    pass


class OracleError(MergeSuiteError):
    pass
