import logging

logging.basicConfig(level=logging.ERROR, format="%(name)s [%(levelname)s] %(message)s")


class ImagePrintBase:
    def __init__(self):
        self.log = logging.getLogger(self.__class__.__module__)
