from .emit import write_declaration_dump, write_document


def generate(document, outdir, fmt="json"):
    return write_document(document, outdir, fmt)
