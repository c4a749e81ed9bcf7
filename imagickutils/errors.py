class ImagickUtilsError(Exception):
    pass


class OptionsError(ImagickUtilsError, ValueError):
    pass


class ToolNotFoundError(ImagickUtilsError):
    pass


class NotAnImageError(ImagickUtilsError):
    pass
