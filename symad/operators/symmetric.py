r"""@package symad.operators.symmetric

Second order propagation shared by all composite operators.

For a node \f$ f(a_0, \ldots, a_{n-1}) \f$ with backward seed \f$ l \f$ the
symmetric pass computes

\f[
    \nabla f^T S = \sum_i \partial_i f\, \nabla a_i^T S
\f]

for the forward seed matrix \f$ S \f$ and the upper triangle of

\f[
    l\, S^T \nabla^2 f\, S
        = \sum_i H_i
        + \sum_{a,b} l\, \partial_a \partial_b f\;
          (\nabla a_a^T S)^T (\nabla a_b^T S),
\f]

where \f$ H_i \f$ is the result of the child \f$ a_i \f$ for the backward
seed \f$ l\, \partial_i f \f$.

The operator only has to provide its local partials via `_partial(i)` and
`_second_partial(i, j)`; symmetric_common() does the rest. Local partials,
propagated backward seeds and the weights of the cross terms are hoisted into
the pass's `shared_set` while child first order results that are needed more
than once are hoisted into `first_order_set`.
"""

from . import construct


__all__ = [
    "symmetric_common",
    "zero_first_order",
    "zero_hessian",
]


def zero_first_order(dim):
    r"""List of `dim` new zero constants."""
    return [construct.zero() for _ in range(dim)]


def zero_hessian(dim):
    r"""Upper triangular `dim` x `dim` matrix of zeros (`None` below)."""
    return [[construct.zero() if k >= j else None for k in range(dim)]
            for j in range(dim)]


def _add_hessians(target, other):
    for j, row in enumerate(other):
        for k, h in enumerate(row):
            if h is not None:
                target[j][k] = construct.add(target[j][k], h)


def symmetric_common(op, arguments, l, seeds, accumulator, ad_pass):
    r"""Run the symmetric pass for a node with the given children.

    Args:
        op: The composite operator providing `_partial()` and
            `_second_partial()`.
        arguments: List of children of `op` in argument order.
        l: Backward seed of `op`. Must be a leaf or projection, i.e. cheap to
            share.
        seeds: The seeds.SeedBundle of the pass.
        accumulator: The seeds.Accumulator collecting the gradient.
        ad_pass: The indexsets.ADPass of the pass.

    @return A pair ``(first, hessian)`` as returned by
        Operator.ad_symmetric().
    """
    dim = seeds.directions
    n = len(arguments)
    shared = ad_pass.shared_set
    l_is_zero = construct.is_zero(l)
    partials = dict()

    def partial(i):
        if i not in partials:
            partials[i] = shared.hoist(op._partial(i))
        return partials[i]

    firsts = []
    hessian = zero_hessian(dim)
    for i, arg in enumerate(arguments):
        if l_is_zero:
            l_i = construct.zero()
        else:
            l_i = shared.hoist(construct.multiply(l.share(), partial(i).share()))
        first_i, hessian_i = arg._symmetric(l_i, seeds, accumulator, ad_pass)
        firsts.append(first_i)
        _add_hessians(hessian, hessian_i)

    weights = dict()
    if not l_is_zero:
        for a in range(n):
            if all(construct.is_zero(f) for f in firsts[a]):
                continue
            for b in range(a, n):
                if all(construct.is_zero(f) for f in firsts[b]):
                    continue
                second = op._second_partial(a, b)
                if construct.is_zero(second):
                    continue
                weights[a, b] = shared.hoist(
                    construct.multiply(l.share(), second)
                )
    reused = set()
    for a, b in weights:
        reused.update((a, b))
    for i in reused:
        firsts[i] = [ad_pass.first_order_set.hoist(f) for f in firsts[i]]

    first = zero_first_order(dim)
    for i in range(n):
        for j, d in enumerate(firsts[i]):
            if construct.is_zero(d):
                continue
            if i in reused:
                d = d.share()
            if construct.is_one(d):
                term = partial(i).share()
            else:
                term = construct.multiply(partial(i).share(), d)
            first[j] = construct.add(first[j], term)

    for (a, b), w in weights.items():
        fa, fb = firsts[a], firsts[b]
        for j in range(dim):
            for k in range(j, dim):
                cross = construct.multiply(fa[j].share(), fb[k].share())
                if a != b:
                    cross = construct.add(
                        cross,
                        construct.multiply(fb[j].share(), fa[k].share()),
                    )
                if construct.is_zero(cross):
                    continue
                hessian[j][k] = construct.add(
                    hessian[j][k], construct.multiply(w.share(), cross)
                )
    return first, hessian
