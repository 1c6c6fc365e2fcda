class ImagePrintError(Exception):
    pass


class InvalidInputError(ImagePrintError, ValueError):
    pass


class LengthMismatchError(ImagePrintError, ValueError):
    pass


class DimensionError(ImagePrintError, ValueError):
    pass
