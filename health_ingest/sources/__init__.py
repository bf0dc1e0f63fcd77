# Each source module exposes load_file(path) -> ImportReport
