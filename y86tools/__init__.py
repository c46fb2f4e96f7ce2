"""Y86-64 assembler, instruction-set simulator, ISA library and HCL code generation."""

__version__ = "0.1.0"