"""Small 1970s-style virtual machine: CPU, frame buffer and disassembler."""

from chipvm.state import EmulatorState, StackState, create_state, load_program
from chipvm.emulator import execute, fetch, tick_timers, load_rom, write_word
from chipvm.decode import DecodedInstruction, DecodeError, Op, decode
from chipvm.constants import *
from chipvm.machine import Machine, MachineSnapshot
from chipvm.disassembler import (
    disassemble_opcode, disassemble_rom, format_instruction, format_listing, instruction_listing,
)
from chipvm.rendering import display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "load_program",
    "fetch",
    "execute",
    "tick_timers",
    "load_rom",
    "write_word",
    "DecodedInstruction",
    "DecodeError",
    "Op",
    "decode",
    "Machine",
    "MachineSnapshot",
    "disassemble_opcode",
    "disassemble_rom",
    "format_instruction",
    "format_listing",
    "instruction_listing",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
]
