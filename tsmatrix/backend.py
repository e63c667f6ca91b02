# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import enum
import logging

import numba
from numba import cuda

logger = logging.getLogger(__name__)

_GIGABYTE = 1024**3


class Backend(enum.IntFlag):
    """
    Compute backends. `get_backends` returns the combination of all backends
    that are usable on the current machine.
    """

    CPU = 1
    CUDA = 2


def get_backends():
    """
    Get all of the available compute backends

    Parameters
    ----------
    None

    Returns
    -------
    backends : Backend
        A flag combining every backend that can be selected
    """
    backends = Backend.CPU
    if cuda.is_available():
        backends |= Backend.CUDA

    return backends


def get_device_count(backend=Backend.CPU):
    """
    Get the number of devices for a given backend

    Parameters
    ----------
    backend : Backend, default Backend.CPU
        The compute backend

    Returns
    -------
    device_count : int
        The number of devices. The CPU backend always exposes a single device.
    """
    backend = Backend(backend)
    if backend == Backend.CUDA:
        if not cuda.is_available():
            return 0
        return len(cuda.list_devices())

    return 1


def _device_name(device_id):
    name = cuda.list_devices()[device_id].name
    if isinstance(name, bytes):
        name = name.decode()

    return name


class Context:
    """
    The compute context shared by every operation in a single call

    The context carries the backend selection, the device id and an optional
    soft memory ceiling per device. It replaces process-wide device state:
    create one at startup and pass it to each operation (or use it as a context
    manager to hold the device while a batch of calls is issued).

    Parameters
    ----------
    backend : Backend, default None
        The compute backend. `None` selects `Backend.CPU`.

    device_id : int, default 0
        The device to use for the selected backend

    device_memory_gb : float, default None
        A soft ceiling, in gigabytes, for the device memory that a single
        matrix profile computation may claim. `None` means no ceiling.

    Examples
    --------
    >>> import numpy as np
    >>> import tsmatrix
    >>> with tsmatrix.Context() as ctx:
    ...     P, I = tsmatrix.stomp(np.random.rand(64), 8, context=ctx)
    """

    def __init__(self, backend=None, device_id=0, device_memory_gb=None):
        self._backend = Backend.CPU
        self._device_id = 0
        self._device_memory = None
        self._device_contexts = []

        if backend is not None:
            self.set_backend(backend)
        self.set_device(device_id)
        if device_memory_gb is not None:
            self.set_device_memory_in_gb(device_memory_gb)

    @property
    def backend(self):
        """
        The selected compute backend
        """
        return self._backend

    @property
    def device_memory(self):
        """
        The soft device memory ceiling in bytes (`None` when unset)
        """
        return self._device_memory

    def set_backend(self, backend):
        """
        Select the compute backend and reset the device to `0`

        Parameters
        ----------
        backend : Backend
            A single, available backend

        Returns
        -------
        None
        """
        backend = Backend(backend)
        if backend not in (Backend.CPU, Backend.CUDA):
            raise ValueError(f"Exactly one backend must be selected. Found {backend}")
        if not backend & get_backends():
            raise ValueError(f"The {backend.name} backend is not available")

        self._backend = backend
        self._device_id = 0
        logger.debug("Selected the %s backend", backend.name)

    def get_device_id(self):
        """
        Get the id of the selected device

        Parameters
        ----------
        None

        Returns
        -------
        device_id : int
            The device id
        """
        return self._device_id

    def set_device(self, device_id):
        """
        Select the device for the current backend

        Parameters
        ----------
        device_id : int
            A device id in `[0, get_device_count(backend))`

        Returns
        -------
        None
        """
        device_count = get_device_count(self._backend)
        if int(device_id) != device_id or not 0 <= device_id < device_count:
            raise ValueError(
                f"Invalid device id {device_id} for the {self._backend.name} "
                + f"backend which has {device_count} device(s)"
            )

        self._device_id = int(device_id)

    def set_device_memory_in_gb(self, memory):
        """
        Set the soft memory ceiling for the selected device

        Parameters
        ----------
        memory : float
            The memory ceiling in gigabytes

        Returns
        -------
        None
        """
        if memory <= 0:
            raise ValueError(f"The device memory must be positive. Found {memory}")

        self._device_memory = int(memory * _GIGABYTE)

    def check_device_memory(self, nbytes):
        """
        Check that `nbytes` fit under the device memory ceiling

        Parameters
        ----------
        nbytes : int
            The number of bytes that a computation needs on the device

        Returns
        -------
        None

        Raises
        ------
        MemoryError
            If a ceiling is set and `nbytes` exceeds it
        """
        if self._device_memory is not None and nbytes > self._device_memory:
            raise MemoryError(
                f"The computation requires {nbytes} bytes of device memory "
                + f"which exceeds the {self._device_memory} bytes ceiling. "
                + "Consider raising the ceiling or reducing the input size."
            )

    def __enter__(self):
        # Contexts may be nested, e.g. `stomp` re-enters a context that the
        # caller already holds
        device_context = None
        if self._backend == Backend.CUDA:
            device_context = cuda.gpus[self._device_id]
            device_context.__enter__()
        self._device_contexts.append(device_context)

        return self

    def __exit__(self, exc_type, exc_value, traceback):
        device_context = self._device_contexts.pop()
        if device_context is not None:
            if cuda.current_context().__class__.__name__ != "FakeCUDAContext":
                cuda.current_context().deallocations.clear()
            device_context.__exit__(exc_type, exc_value, traceback)

        return False

    def __repr__(self):
        return (
            f"Context(backend={self._backend.name}, device_id={self._device_id}, "
            + f"device_memory={self._device_memory})"
        )


def get_context(context=None):
    """
    Return `context` or, when `None`, a fresh CPU context

    Parameters
    ----------
    context : Context, default None
        A compute context

    Returns
    -------
    context : Context
        The compute context to use
    """
    if context is None:
        return Context()

    if not isinstance(context, Context):
        raise TypeError(f"Expected a `Context` but found {type(context)}")

    return context


def backend_info(context=None):
    """
    Describe the selected backend and device

    Parameters
    ----------
    context : Context, default None
        A compute context. `None` describes the default CPU context.

    Returns
    -------
    info : str
        A human readable summary
    """
    context = get_context(context)
    if context.backend == Backend.CUDA:
        device_id = context.get_device_id()
        device = f"device {device_id} ({_device_name(device_id)})"
    else:
        device = f"{numba.config.NUMBA_NUM_THREADS} thread(s)"

    return (
        f"numba {numba.__version__}, backend {context.backend.name}, {device}, "
        + f"available backends: {get_backends()!r}"
    )
