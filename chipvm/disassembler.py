"""Static disassembler for program images.

The scan starts at 0x200 and decodes two bytes at a time. Unconditional jumps
are followed to their target the first time that target is seen, which lets
the scan step over data embedded between code blocks and resynchronise on
odd addresses. A target seen before falls back to sequential advance, which
guarantees termination.

This is a best-effort approximation. Jump tables (BNNN), self-modifying code
and data that happens to decode cleanly are not told apart from real code; the
result is meant for a debugger listing, never for deciding what to execute.
"""

from typing import Optional

from chipvm.constants import PROGRAM_START
from chipvm.decode import DecodedInstruction, DecodeError, Op, decode


def _address(value: int) -> str:
    return f"0x{value:03X}"


def _byte(value: int) -> str:
    return f"0x{value:02X}"


MNEMONICS = {
    Op.CLEAR_SCREEN: lambda i: "clear screen",
    Op.RETURN: lambda i: "return",
    Op.CALL_MACHINE: lambda i: f"call (machine): {_address(i.nnn)}",
    Op.JUMP: lambda i: f"jump: {_address(i.nnn)}",
    Op.CALL: lambda i: f"call: {_address(i.nnn)}",
    Op.SKIP_IF_EQUAL_IMMEDIATE: lambda i: f"skip if V{i.x:X} == {_byte(i.nn)}",
    Op.SKIP_IF_NOT_EQUAL_IMMEDIATE: lambda i: f"skip if V{i.x:X} != {_byte(i.nn)}",
    Op.SKIP_IF_EQUAL_REGISTER: lambda i: f"skip if V{i.x:X} == V{i.y:X}",
    Op.SET_IMMEDIATE: lambda i: f"V{i.x:X} = {_byte(i.nn)}",
    Op.ADD_IMMEDIATE: lambda i: f"V{i.x:X} += {_byte(i.nn)}",
    Op.SET_REGISTER: lambda i: f"V{i.x:X} = V{i.y:X}",
    Op.OR: lambda i: f"V{i.x:X} = V{i.x:X} | V{i.y:X}",
    Op.AND: lambda i: f"V{i.x:X} = V{i.x:X} & V{i.y:X}",
    Op.XOR: lambda i: f"V{i.x:X} = V{i.x:X} ^ V{i.y:X}",
    Op.ADD_REGISTER: lambda i: f"V{i.x:X} = V{i.x:X} + V{i.y:X}",
    Op.SUB_XY: lambda i: f"V{i.x:X} = V{i.x:X} - V{i.y:X}",
    Op.SHIFT_RIGHT: lambda i: f"V{i.x:X} >>= 1",
    Op.SUB_YX: lambda i: f"V{i.x:X} = V{i.y:X} - V{i.x:X}",
    Op.SHIFT_LEFT: lambda i: f"V{i.x:X} <<= 1",
    Op.SKIP_IF_NOT_EQUAL_REGISTER: lambda i: f"skip if V{i.x:X} != V{i.y:X}",
    Op.SET_INDEX: lambda i: f"I = {_address(i.nnn)}",
    Op.JUMP_WITH_OFFSET: lambda i: f"jump to V0 + {_address(i.nnn)}",
    Op.RANDOM: lambda i: f"V{i.x:X} = rand() & {_byte(i.nn)}",
    Op.DRAW: lambda i: f"render(V{i.x:X}, V{i.y:X}, {i.n})",
    Op.SKIP_IF_KEY: lambda i: f"skip if V{i.x:X} pressed",
    Op.SKIP_IF_NOT_KEY: lambda i: f"skip if V{i.x:X} not pressed",
    Op.GET_DELAY_TIMER: lambda i: f"V{i.x:X} = get_delay()",
    Op.WAIT_FOR_KEY: lambda i: f"V{i.x:X} = get_key()",
    Op.SET_DELAY_TIMER: lambda i: f"delay_timer = V{i.x:X}",
    Op.SET_SOUND_TIMER: lambda i: f"sound_timer = V{i.x:X}",
    Op.ADD_TO_INDEX: lambda i: f"I += V{i.x:X}",
    Op.FONT_CHARACTER: lambda i: f"I = sprite_addr(V{i.x:X})",
    Op.BCD: lambda i: f"BCD(V{i.x:X})",
    Op.STORE_REGISTERS: lambda i: f"dump(V{i.x:X})",
    Op.LOAD_REGISTERS: lambda i: f"load(V{i.x:X})",
}


def format_instruction(instruction: DecodedInstruction) -> str:
    """Render a decoded instruction as mnemonic text."""
    return MNEMONICS[instruction.kind](instruction)


def disassemble_opcode(opcode: int) -> str:
    """Render a raw instruction word. Raises DecodeError if it is unknown."""
    return format_instruction(decode(opcode))


def format_data(opcode: int) -> str:
    return f"DATA[0x{opcode:04X}]"


def disassemble_rom(program: bytes) -> dict[int, str]:
    """Map each address reached by the scan to its mnemonic text.

    ``program`` is the raw image that gets loaded at 0x200. Words that do not
    decode are kept as ``DATA[0x....]`` entries.
    """
    disassembled = {}
    visited = set()
    pc = PROGRAM_START

    while PROGRAM_START <= pc and pc - PROGRAM_START + 1 < len(program):
        offset = pc - PROGRAM_START
        opcode = (program[offset] << 8) | program[offset + 1]
        try:
            instruction = decode(opcode)
        except DecodeError:
            disassembled[pc] = format_data(opcode)
            pc += 2
            continue

        disassembled[pc] = format_instruction(instruction)

        if instruction.kind is Op.JUMP and instruction.nnn not in visited:
            # Jump targets may be odd addresses
            visited.add(instruction.nnn)
            pc = instruction.nnn
        else:
            pc += 2

    return disassembled


def format_listing(disassembled: dict[int, str]) -> str:
    """Render a disassembly as ``ADDR: text`` lines in address order."""
    return "\n".join(f"{address:03X}: {text}" for address, text in sorted(disassembled.items()))


def instruction_listing(
    disassembled: dict[int, str], pc: int, length: int = 32
) -> list[Optional[tuple[int, str]]]:
    """Return the listing page that contains ``pc``.

    Pages start on multiples of ``length``; the page holds the first
    ``length`` disassembled addresses from that start and is padded with
    ``None`` when the disassembly runs out.
    """
    start = (pc // length) * length
    entries = [
        (address, disassembled[address])
        for address in sorted(disassembled)
        if address >= start
    ][:length]
    return entries + [None] * (length - len(entries))
