import os


def saveLog(header: str, notes: str, inputs: dict, outputs: dict, log, filename: str):
    """
    Saves the log of a circuit to a text file
    :param header: the one-line summary of the circuit (e.g., constraint and wire counts)
    :param notes: additional notes on the circuit
    :param inputs: dict from input name to its address(es)
    :param outputs: dict from output name to its address(es)
    :param log: the list of log lines emitted by the simulator
    :param filename: the path of the output file (directories are created as needed)
    """

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, 'w') as f:
        f.write(header + '\n')
        f.write(notes + '\n\n')
        f.write('Inputs:\n')
        for name, addr in inputs.items():
            f.write(f'\t{name}: {_formatAddresses(addr)}\n')
        f.write('Outputs:\n')
        for name, addr in outputs.items():
            f.write(f'\t{name}: {_formatAddresses(addr)}\n')
        f.write('\n')
        f.write('\n'.join(log))
        f.write('\n')


def _formatAddresses(addr):
    """
    Formats a single address or a sequence of addresses as wire names
    """

    if isinstance(addr, (list, tuple)) or getattr(addr, 'ndim', 0) > 0:
        return ', '.join(f'w{int(x)}' for x in addr)
    return f'w{int(addr)}'
