"""Source extractors: annotated C++ headers and QML components."""
