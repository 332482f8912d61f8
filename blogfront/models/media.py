from blogfront.models.record import Record


class Media(Record):
    file: str = ""  # backend-native filename
    caption: str = ""
    path: str = ""  # canonical public path
