"""Fully-connected feedforward network with manual backpropagation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

import numpy as np

LOGGER = logging.getLogger(__name__)

SIGMOID_CLAMP = 500.0
BIAS_SCALE = 0.1


class Activation(str, Enum):
    """Activation functions supported by :class:`Layer`."""

    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"

    def apply(self, values: np.ndarray) -> np.ndarray:
        return _ACTIVATIONS[self][0](values)

    def derivative(self, outputs: np.ndarray) -> np.ndarray:
        """Return the derivative expressed in terms of the activation output."""

        return _ACTIVATIONS[self][1](outputs)


def sigmoid(values: np.ndarray) -> np.ndarray:
    clamped = np.clip(values, -SIGMOID_CLAMP, SIGMOID_CLAMP)
    return 1.0 / (1.0 + np.exp(-clamped))


_ACTIVATIONS: dict[Activation, tuple[Callable[[np.ndarray], np.ndarray], Callable[[np.ndarray], np.ndarray]]] = {
    Activation.SIGMOID: (sigmoid, lambda y: y * (1.0 - y)),
    Activation.TANH: (np.tanh, lambda y: 1.0 - y * y),
    Activation.RELU: (lambda x: np.maximum(x, 0.0), lambda y: (y > 0).astype(float)),
}


def activation_for_layer(position: int, layer_count: int) -> Activation:
    """Select the activation for the ``position``-th weight layer (0-based).

    The output layer always uses sigmoid so predictions stay within the
    normalised target range; the first hidden layer uses tanh and every
    other hidden layer ReLU.
    """

    if position == layer_count - 1:
        return Activation.SIGMOID
    if position == 0:
        return Activation.TANH
    return Activation.RELU


@dataclass(frozen=True)
class Neuron:
    """Read-only view of a single neuron's parameters."""

    weights: np.ndarray
    bias: float


class Layer:
    """A dense layer; row ``i`` of ``weights`` and ``biases[i]`` belong to neuron ``i``."""

    def __init__(
        self,
        neuron_count: int,
        input_size: int,
        activation: Activation,
        rng: np.random.Generator,
    ) -> None:
        self.activation = activation
        scale = np.sqrt(2.0 / input_size)
        self.weights = (rng.random((neuron_count, input_size)) - 0.5) * scale
        self.biases = (rng.random(neuron_count) - 0.5) * BIAS_SCALE

    @property
    def input_size(self) -> int:
        return int(self.weights.shape[1])

    @property
    def size(self) -> int:
        return int(self.weights.shape[0])

    @property
    def neurons(self) -> tuple[Neuron, ...]:
        return tuple(
            Neuron(weights=self.weights[index].copy(), bias=float(self.biases[index]))
            for index in range(self.size)
        )

    def forward(self, inputs: np.ndarray) -> np.ndarray:
        return self.activation.apply(self.biases + self.weights @ inputs)


class NeuralNetwork:
    """Stack of dense layers trained with online stochastic gradient descent.

    ``architecture`` lists layer widths from input to output, e.g.
    ``[16, 32, 16, 8, 1]``. The forward and backward passes keep their
    intermediate outputs and deltas in local arrays, so inference on a
    network that is no longer being trained is safe to run concurrently.
    """

    def __init__(
        self,
        architecture: Sequence[int],
        learning_rate: float = 0.01,
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        widths = [int(width) for width in architecture]
        if len(widths) < 2:
            raise ValueError("Architecture needs at least an input and an output width.")
        if any(width <= 0 for width in widths):
            raise ValueError(f"Layer widths must be positive, got {widths}.")
        if learning_rate <= 0:
            raise ValueError("learning_rate must be positive.")

        self.architecture = tuple(widths)
        self.learning_rate = float(learning_rate)
        self._locked = False

        generator = rng if rng is not None else np.random.default_rng(seed)
        layer_count = len(widths) - 1
        self.layers: list[Layer] = [
            Layer(
                neuron_count=widths[position + 1],
                input_size=widths[position],
                activation=activation_for_layer(position, layer_count),
                rng=generator,
            )
            for position in range(layer_count)
        ]
        LOGGER.debug("Initialised network %s (learning rate %s)", self.architecture, self.learning_rate)

    @property
    def input_size(self) -> int:
        return self.architecture[0]

    @property
    def output_size(self) -> int:
        return self.architecture[-1]

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        """Make the parameters read-only; further training steps are rejected."""

        for layer in self.layers:
            layer.weights.setflags(write=False)
            layer.biases.setflags(write=False)
        self._locked = True

    def predict(self, inputs: Sequence[float] | np.ndarray) -> np.ndarray:
        """Run a forward pass and return the output layer activations."""

        return self._forward_trace(self._check_inputs(inputs))[-1]

    def train_step(
        self,
        inputs: Sequence[float] | np.ndarray,
        targets: Sequence[float] | np.ndarray,
    ) -> np.ndarray:
        """Apply one backpropagation update and return the pre-update outputs."""

        if self._locked:
            raise RuntimeError("Network is locked; train a new model instead of mutating this one.")
        values = self._check_inputs(inputs)
        expected = np.asarray(targets, dtype=float).reshape(-1)
        if expected.shape[0] != self.output_size:
            raise ValueError(
                f"Expected {self.output_size} target values, got {expected.shape[0]}."
            )

        outputs = self._forward_trace(values)
        deltas = self._backward_deltas(outputs, expected)
        for layer, layer_inputs, delta in zip(self.layers, outputs[:-1], deltas):
            layer.weights += self.learning_rate * np.outer(delta, layer_inputs)
            layer.biases += self.learning_rate * delta
        return outputs[-1]

    def _check_inputs(self, inputs: Sequence[float] | np.ndarray) -> np.ndarray:
        values = np.asarray(inputs, dtype=float).reshape(-1)
        if values.shape[0] != self.input_size:
            raise ValueError(f"Expected {self.input_size} inputs, got {values.shape[0]}.")
        return values

    def _forward_trace(self, inputs: np.ndarray) -> list[np.ndarray]:
        """Return the input followed by every layer's output vector."""

        trace = [inputs]
        for layer in self.layers:
            trace.append(layer.forward(trace[-1]))
        return trace

    def _backward_deltas(self, outputs: list[np.ndarray], targets: np.ndarray) -> list[np.ndarray]:
        # Deltas are computed right-to-left against the pre-update weights.
        output_layer = self.layers[-1]
        deltas = [(targets - outputs[-1]) * output_layer.activation.derivative(outputs[-1])]
        for index in range(len(self.layers) - 2, -1, -1):
            following = self.layers[index + 1]
            error = following.weights.T @ deltas[0]
            deltas.insert(0, error * self.layers[index].activation.derivative(outputs[index + 1]))
        return deltas


__all__ = [
    "Activation",
    "Layer",
    "NeuralNetwork",
    "Neuron",
    "activation_for_layer",
    "sigmoid",
]
