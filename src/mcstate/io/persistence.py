"""Save and load complete simulations.

File layout written by `save`::

    VERSION                 format version (FORMAT_VERSION)
    MC/VERSION, MC/type     simulation envelope
    MC/data/...             engine state
    MC/Model/...            model envelope (with MC/Model/Lattice/...)
    MC/Measurements/<name>  measurement envelopes
    RNG                     generator state

Loading mirrors saving: `load(filename)` decodes ``MC``, while
`load(filename, "Measurements")` or `load(filename, "MC", "Model")` decode a
single part of the tree.
"""

import logging
import os
from pathlib import Path

from mcstate.config import SaveOptions
from mcstate.errors import FormatVersionMismatch, TargetExistsError
from mcstate.io.codec import decode_entity, decode_group, encode_entity
from mcstate.io.filenames import generate_unique_filename
from mcstate.io.rng import load_rng, save_rng
from mcstate.io.store import Group, open_store

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def save(
    filename,
    mc,
    *,
    overwrite: bool | None = None,
    rename: bool | None = None,
    compress: bool | None = None,
    rng=None,
    backend=None,
    options: SaveOptions | None = None,
    **backend_options,
) -> Path:
    """Save the simulation `mc` to `filename`.

    If the file exists and `rename` is set, a free variant of the name is
    used instead. If `overwrite` is set the existing file is moved to a
    hidden backup next to it, which is deleted once the new file is
    complete. When the save fails the incomplete target is removed and any
    backup is kept. If neither is set, `TargetExistsError` is raised.

    Args:
        filename: Target file; `.npz` selects the numpy backend, anything
            else the JSON backend
        mc: Simulation to save
        overwrite: Replace an existing file (default False)
        rename: Pick a new name if the file exists (default True)
        compress: Let the backend compress (default True)
        rng: Generator whose state is stored (default: the global generator)
        backend: Backend name, class or instance overriding the extension
        options: `SaveOptions` supplying defaults for the flags above
        **backend_options: Passed to the backend

    Returns:
        Path of the file actually written
    """
    options = options or SaveOptions()
    overwrite = options.overwrite if overwrite is None else overwrite
    rename = options.rename if rename is None else rename
    compress = options.compress if compress is None else compress
    backend_options = {**options.backend_options, **backend_options}

    filename = Path(filename)
    exists = filename.is_file()

    if exists and not overwrite and not rename:
        raise TargetExistsError(filename)
    if exists and not overwrite:
        requested = filename
        filename = generate_unique_filename(filename)
        logger.warning("%s already exists, saving to %s instead", requested, filename)

    backup = None
    if exists and overwrite:
        backup = generate_unique_filename(filename.with_name("." + filename.name))
        os.replace(filename, backup)
        logger.debug("Moved %s to backup %s", filename, backup)

    try:
        with open_store(filename, "w", backend=backend, compress=compress, **backend_options) as store:
            store["VERSION"] = FORMAT_VERSION
            save_mc(store, mc, "MC")
            save_rng(store, rng)
    except BaseException:
        # a failed save leaves nothing at the target
        _remove_incomplete(filename)
        if backup is not None:
            logger.error(
                "Saving %s failed; the previous file is kept at %s", filename, backup
            )
        raise

    if backup is not None:
        backup.unlink()

    logger.info("Saved %s", filename)
    return filename


def _remove_incomplete(filename: Path):
    try:
        filename.unlink(missing_ok=True)
    except OSError:
        logger.exception("Could not remove incomplete file %s", filename)
    else:
        logger.debug("Removed incomplete file %s", filename)


def _write_entity(target, entity, entryname: str, backend=None, **backend_options):
    # `target` is either an open group or a file name
    if isinstance(target, Group):
        return encode_entity(target, entryname, entity)

    with open_store(target, "a", backend=backend, **backend_options) as store:
        encode_entity(store, entryname, entity)


def save_mc(target, mc, entryname: str = "MC", **kwargs):
    """Save the simulation envelope of `mc` under `entryname`.

    `target` is an open group or a file name (opened in append mode).
    """
    _write_entity(target, mc, entryname, **kwargs)


def save_model(target, model, entryname: str = "MC/Model", **kwargs):
    """Save (minimal) information to reconstruct `model` under `entryname`."""
    _write_entity(target, model, entryname, **kwargs)


def save_lattice(target, lattice, entryname: str = "MC/Model/Lattice", **kwargs):
    """Save (minimal) information to reconstruct `lattice` under `entryname`."""
    _write_entity(target, lattice, entryname, **kwargs)


def check_format_version(store, filename=None):
    """Raise `FormatVersionMismatch` unless the file has the supported VERSION."""
    version = store["VERSION"] if "VERSION" in store else None
    if version != FORMAT_VERSION:
        raise FormatVersionMismatch(FORMAT_VERSION, version, str(filename or store.location))
    return version


def load(filename, *groups: str, rng=None, restore_rng: bool = True, backend=None):
    """Load a simulation (or part of it) from `filename`.

    Args:
        filename: File written by `save`
        *groups: Path segments selecting a part of the file. ``MC`` is
            prepended when the file has a simulation and it is not named
        rng: Generator receiving the stored state (default: the global
            generator)
        restore_rng: Set to False to leave all generators untouched
        backend: Backend override, as for `save`

    Returns:
        The decoded object, or an `UnknownEntity` if its type is not known
        in this process
    """
    with open_store(filename, "r", backend=backend) as store:
        check_format_version(store, filename)

        if restore_rng and "RNG" in store:
            load_rng(store, rng)

        if "MC" in store and "MC" not in groups:
            groups = ("MC",) + groups
        output = _load(store, *groups)

    logger.info("Loaded %s", "/".join((str(filename),) + groups))
    return output


def _load(data: Group, *groups: str):
    if not groups:
        return decode_entity(data)
    for name in groups[:-1]:
        data = data[name]
    return decode_group(data, groups[-1])
