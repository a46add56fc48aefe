"""nnetrain: minibatch training for feed-forward networks.

A network is a graph of named input, component and output nodes. Each
output declares its objective (linear or quadratic). NnetTrainer takes one
example at a time, compiles the computation it needs, runs it forward,
evaluates each output's objective against the example's supervision, and
back-propagates to update the network, reporting the average objective per
output as it goes.
"""
