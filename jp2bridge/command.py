"""
Command builder - maps encode parameters onto a kdu_compress argument vector
"""

import logging
import os


logger = logging.getLogger(__name__)

STDOUT = "/dev/stdout"


def escape(value):
    """
    Quote a value if it contains a space.

    Embedded quote characters are passed through untouched.
    """
    value = str(value)
    if ' ' in value:
        return f'"{value}"'
    return value


def _unescape(arg):
    # Quotes come from escape(), around a whole token or the value after "Cxxx="
    if len(arg) > 1 and arg.endswith('"'):
        start = arg.find('"')
        if start < len(arg) - 1 and (start == 0 or arg[start - 1] == '='):
            return arg[:start] + arg[start + 1:-1]
    return arg


def build_compress_args(params):
    """
    Build the parameter part of a kdu_compress command.

    Args:
        params: EncodeParameters with levels already resolved

    Returns:
        list: Arguments in fixed order
    """
    args = list(params.quality_flag)

    args.append(f"Clevels={params.levels}")
    if params.precincts is not None:
        args.append(f"Cprecincts={escape(params.precincts)}")
    if params.layers > 0:
        args.append(f"Clayers={params.layers}")
    if params.progression_order is not None:
        args.append(f"Corder={params.progression_order}")
    if params.packet_division is not None:
        args.append(f"ORGtparts={params.packet_division}")
    if params.code_block_size is not None:
        args.append(f"Cblk={escape(params.code_block_size)}")
    args.append(f"ORGgen_plt={'yes' if params.insert_plt else 'no'}")
    args.append(f"Creversible={'yes' if params.use_reversible else 'no'}")
    if params.color_space:
        args.extend(['-jp2_space', params.color_space])

    return args


def build_compress_command(executable, input_path, output_path, params):
    """
    Build the full kdu_compress argument vector.

    Args:
        executable: Path to the kdu_compress binary
        input_path: Input TIFF path
        output_path: Output JP2 path, or STDOUT
        params: EncodeParameters with levels already resolved

    Returns:
        list: Argument vector, escaped for display and tokenizing
    """
    if params.levels <= 0:
        raise ValueError("Resolution levels must be resolved before building a command")

    command = [
        str(executable),
        '-quiet',
        '-i', escape(os.path.abspath(input_path)),
        '-o', escape(os.path.abspath(output_path)),
    ]
    command.extend(build_compress_args(params))

    logger.debug("Compress command: %s", format_command(command))
    return command


def to_process_args(argv):
    """Strip escape quotes so the vector can be handed straight to the OS."""
    return [_unescape(str(arg)) for arg in argv]


def format_command(argv):
    """Render an argument vector as a single command line."""
    return ' '.join(str(arg) for arg in argv)
