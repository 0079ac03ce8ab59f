"""qmltypegen: QML type metadata extraction and resolution for API docs."""
