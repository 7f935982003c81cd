"""JIT kernels and the parallel scanline scheduler."""
