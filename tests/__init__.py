# Tests for the Density-Matrix Simulator
#
# Test organization mirrors source structure:
#   - test_backends/: vectorized density-matrix store and its kernels
#   - test_engine/: gate table, dispatch, chunk routing, partial trace,
#     noise channels, measurement and reset
#   - test_framework/: instruction model, classical register, random source,
#     result sink, configuration, index helpers
#   - test_simulator.py: end-to-end runs through the circuit driver
#
# reference.py holds dense 2^N x 2^N reference formulas used as ground truth.
#
# Running tests:
#   pytest tests/
#   pytest tests/test_engine/ -v
#   pytest tests/ -k "chunk"
