from spdf_compiler.api import Application
from spdf_compiler.compiler.pipeline import CompilerConfig

# Video decoder chain:
# vld (1) -> (4) iq (5) -> (8) idct (9) -> (10) mc
# Repetitions: vld=64, iq=16, idct=10, mc=9.


def build_decoder() -> Application:
    app = Application("decoder")
    for name in ("vld", "iq", "idct", "mc"):
        app.actor(name)

    app.connect("vld.out", "iq.in", src_rate="1", dst_rate="4")
    app.connect("iq.out", "idct.in", src_rate="5", dst_rate="8")
    app.connect("idct.out", "mc.in", src_rate="9", dst_rate="10")
    return app


# Parametric producer/consumer:
# prod emits 5*p tokens per firing and sets p once every 2 firings.
# Repetitions: prod=2, <p>=1, cons=2*p.


def build_parametric() -> Application:
    app = Application("parametric")
    app.actor("prod").actor("cons")
    app.connect("prod.out", "cons.in", src_rate="5*p", dst_rate="5")
    app.modify("prod", "p", period="2")
    return app


# a1 sets p on every firing, a2 sets q once every 3*p firings.
# <p> fires 3 times per <q> firing, so p changes in the middle of an a1 window: unsafe.


def build_unsafe() -> Application:
    app = Application("unsafe")
    for name in ("a1", "a2", "a3", "a4"):
        app.actor(name)
    app.connect("a1.out1", "a2.in1", src_rate="2*p", dst_rate="1")
    app.connect("a2.out1", "a3.in1", src_rate="q", dst_rate="p")
    app.connect("a4.out1", "a3.in2", src_rate="3*q", dst_rate="1")
    app.modify("a1", "p", period="1")
    app.modify("a2", "q", period="3*p")
    return app


def run_decoder_check():
    app = build_decoder()
    report = app.analyze()
    if report.ok:
        print(f"Decoder repetitions: {app.solutions}")
    else:
        print(report)


def run_parametric_check():
    print("\n--- Parametric rates ---")
    app = build_parametric()
    report = app.analyze()
    print(report)


def run_unsafe_check():
    print("\n--- Unsafe parameter modification ---")
    app = build_unsafe()
    report = app.analyze(CompilerConfig(stop_on_error=False))
    print(report)
    if report.ok:
        print("Expected a safety violation but analysis succeeded!")
    else:
        print("Caught expected safety violation.")


if __name__ == "__main__":
    run_decoder_check()
    run_parametric_check()
    run_unsafe_check()
