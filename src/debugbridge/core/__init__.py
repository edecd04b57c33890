"""Transport-independent protocol core: models, codec and reassembly."""
