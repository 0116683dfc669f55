def format_file_size(num_bytes: int) -> str:
    """Human-readable size, as stored on document rows and shown in upload slots."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"
