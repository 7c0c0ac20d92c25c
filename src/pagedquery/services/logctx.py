def ctx_prefix(*, each: bool, page: bool, batch_size: int) -> str:
    mode = "each" if each else "batch"
    strategy = "page" if page else "cursor"
    return f"mode={mode} strategy={strategy} batch_size={batch_size}"
