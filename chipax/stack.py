"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chipax.constants import STACK_SIZE
from chipax.errors import Fault
from chipax.state import StackState


def is_full(stack: StackState) -> jnp.ndarray:
    return stack.pointer >= STACK_SIZE


def is_empty(stack: StackState) -> jnp.ndarray:
    return stack.pointer == 0


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack.

    Returns the new stack and a fault code, ``Fault.STACK_OVERFLOW`` when all
    entries were already in use. The stack is left unchanged on overflow.
    """
    overflow = is_full(stack)
    slot = jnp.minimum(stack.pointer, STACK_SIZE - 1)
    new_data = jnp.where(overflow, stack.data, stack.data.at[slot].set(jnp.astype(address, jnp.uint16)))
    new_pointer = jnp.where(overflow, stack.pointer, stack.pointer + 1)
    fault = jnp.where(overflow, int(Fault.STACK_OVERFLOW), int(Fault.NONE)).astype(jnp.uint8)
    return stack.replace(data=new_data, pointer=new_pointer), fault


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack.

    Returns the new stack, the popped address and a fault code,
    ``Fault.STACK_UNDERFLOW`` when the stack was empty.
    """
    underflow = is_empty(stack)
    new_pointer = jnp.where(underflow, stack.pointer, stack.pointer - 1)
    popped_address = stack.data[new_pointer]
    new_data = jnp.where(underflow, stack.data, stack.data.at[new_pointer].set(0))
    fault = jnp.where(underflow, int(Fault.STACK_UNDERFLOW), int(Fault.NONE)).astype(jnp.uint8)
    return stack.replace(data=new_data, pointer=new_pointer), popped_address, fault
