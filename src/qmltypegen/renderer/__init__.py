"""Output writers: resolved JSON documents and documentation page stubs."""
